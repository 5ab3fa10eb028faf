"""Keyed write coalescing.

A burst of edits to one record collapses into a single write: every
``submit`` merges its fields into the pending write for that key and pushes
the flush back by ``delay`` seconds.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone

from apscheduler.jobstores.base import JobLookupError
from apscheduler.triggers.date import DateTrigger

logger = logging.getLogger(__name__)


class CoalescingWriter:
    """Debounce writes per key; the latest value of each field wins."""

    def __init__(self, flush, delay: float, scheduler, name: str = "coalesce"):
        self._flush = flush
        self.delay = delay
        self._scheduler = scheduler
        self._name = name
        self._pending = {}
        self._lock = threading.Lock()

    def _job_id(self, key) -> str:
        return f"{self._name}:{key!r}"

    def submit(self, key, **fields) -> None:
        """Queue *fields* for *key* and restart its timer."""
        with self._lock:
            self._pending.setdefault(key, {}).update(fields)
            self._cancel_job(key)
            self._scheduler.add_job(
                self._run,
                trigger=DateTrigger(
                    run_date=datetime.now(timezone.utc) + timedelta(seconds=self.delay)
                ),
                id=self._job_id(key),
                args=[key],
                replace_existing=True,
                misfire_grace_time=None,
            )

    def pending(self, key) -> dict | None:
        with self._lock:
            fields = self._pending.get(key)
            return dict(fields) if fields is not None else None

    def pending_keys(self) -> list:
        with self._lock:
            return list(self._pending)

    def flush(self, key) -> bool:
        """Write *key* now. Returns False if nothing was pending."""
        with self._lock:
            fields = self._pending.pop(key, None)
            self._cancel_job(key)
        if fields is None:
            return False
        self._flush(key, fields)
        return True

    def discard(self, match) -> int:
        """Drop pending writes whose key satisfies *match* without writing them."""
        with self._lock:
            keys = [key for key in self._pending if match(key)]
            for key in keys:
                del self._pending[key]
                self._cancel_job(key)
        if keys:
            logger.info("Discarded %d pending writes", len(keys))
        return len(keys)

    def flush_all(self) -> int:
        count = 0
        for key in self.pending_keys():
            if self.flush(key):
                count += 1
        return count

    def shutdown(self) -> None:
        self.flush_all()

    def _run(self, key) -> None:
        try:
            self.flush(key)
        except Exception:
            logger.exception("Deferred write failed for %r", key)

    def _cancel_job(self, key) -> None:
        try:
            self._scheduler.remove_job(self._job_id(key))
        except JobLookupError:
            pass
