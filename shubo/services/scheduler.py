"""APScheduler integration for deferred daily-record writes."""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

_scheduler = BackgroundScheduler(timezone="UTC")


def init_app(app) -> None:
    """Start the background scheduler unless disabled in config."""
    if not app.config.get("SCHEDULER_ENABLED", True):
        logger.info("Background scheduler disabled.")
        return
    if not _scheduler.running:
        _scheduler.start()
        logger.info("Background scheduler started.")


def get_scheduler() -> BackgroundScheduler:
    return _scheduler
