"""Change notifications for committed writes.

SQLAlchemy session events record which tables a transaction touched; after
commit every handler registered for those tables is called with the table
name. Any writer in this process (requests, deferred flushes, scripts)
triggers them.
"""

import logging
import threading
from collections import defaultdict
from itertools import chain

from flask import current_app, has_app_context
from sqlalchemy import event
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Tables whose changes invalidate the cached application state
WATCHED_TABLES = (
    "shubo_raw_data",
    "shubo_configured_data",
    "shubo_recipe_data",
    "tank_conversions",
    "shubo_tank_config",
    "settings",
)

_INFO_KEY = "shubo_changed_tables"


class RemoteChangeNotifier:
    """Registry of ``handler(table)`` callbacks per table name."""

    def __init__(self):
        self._handlers = defaultdict(list)
        self._lock = threading.Lock()

    def on_remote_change(self, table: str, handler) -> None:
        with self._lock:
            self._handlers[table].append(handler)

    def notify(self, table: str) -> None:
        with self._lock:
            handlers = list(self._handlers.get(table, ()))
        for handler in handlers:
            try:
                handler(table)
            except Exception:
                logger.exception("Change handler failed for %s", table)


@event.listens_for(Session, "after_flush")
def _collect_flushed(session, flush_context):
    tables = session.info.setdefault(_INFO_KEY, set())
    for obj in chain(session.new, session.dirty, session.deleted):
        table = getattr(obj, "__tablename__", None)
        if table:
            tables.add(table)


@event.listens_for(Session, "do_orm_execute")
def _collect_bulk(orm_execute_state):
    if not (orm_execute_state.is_update or orm_execute_state.is_delete):
        return
    mapper = orm_execute_state.bind_mapper
    if mapper is not None:
        tables = orm_execute_state.session.info.setdefault(_INFO_KEY, set())
        tables.add(mapper.persist_selectable.name)


@event.listens_for(Session, "after_commit")
def _dispatch(session):
    tables = session.info.pop(_INFO_KEY, None)
    if not tables or not has_app_context():
        return
    notifier = current_app.extensions.get("shubo_notifier")
    if notifier is None:
        return
    for table in sorted(tables):
        notifier.notify(table)


@event.listens_for(Session, "after_rollback")
def _discard(session):
    session.info.pop(_INFO_KEY, None)
