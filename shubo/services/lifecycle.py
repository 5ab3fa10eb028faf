from datetime import date, datetime

from shubo.services.types import MergedBatch


class BatchStatus:
    """Lifecycle phase constants."""
    PREPARING = "preparing"
    ACTIVE = "active"
    COMPLETE = "complete"

    # Dashboard ordering
    ORDER = {ACTIVE: 1, PREPARING: 2, COMPLETE: 3}


def _as_date(value) -> date:
    """Strip time of day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def batch_status(batch: MergedBatch, today) -> str:
    """Phase of *batch* on *today*, judged against its last end date."""
    today = _as_date(today)
    start = _as_date(batch.start_date)
    last_end = _as_date(batch.end_dates[-1])

    if today < start:
        return BatchStatus.PREPARING
    if today <= last_end:
        return BatchStatus.ACTIVE
    return BatchStatus.COMPLETE


def day_number(start_date, today) -> int:
    """Day index of *today* in a batch started on *start_date* (day 1 = start)."""
    return (_as_date(today) - _as_date(start_date)).days + 1


def fiscal_year_for(value) -> int:
    """Brewing year (July 1 - June 30), named by the year it starts in."""
    value = _as_date(value)
    return value.year if value.month >= 7 else value.year - 1
