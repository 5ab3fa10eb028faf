"""Daily fermentation records: default skeleton generation and persistence."""

import atexit
import logging
from contextlib import nullcontext
from datetime import date, timedelta

from flask import current_app, has_app_context

from shubo import db
from shubo.models import DailyRecord, Settings
from shubo.services.scheduler import get_scheduler
from shubo.services.types import DailyEntry, MergedBatch
from shubo.services.writer import CoalescingWriter

logger = logging.getLogger(__name__)


class DayLabel:
    """Fixed labels for the first, second and final day, plus the editable options."""
    BREWING = "brewing"
    FIRST_CHECK = "first-check"
    DISCHARGE = "discharge"
    PLACEHOLDER = "-"

    OPTIONS = (PLACEHOLDER, "warming", "splitting", DISCHARGE)


def day_label(day: int, last_day: int) -> str:
    if day == 1:
        return DayLabel.BREWING
    if day == 2:
        return DayLabel.FIRST_CHECK
    if day == last_day:
        return DayLabel.DISCHARGE
    return DayLabel.PLACEHOLDER


def generate_daily_records(batch: MergedBatch, time_slot: str = "") -> list[DailyEntry]:
    """Default one-per-day records covering days 1..max_days of *batch*.

    Callers persist these only when the batch has no records yet; the result
    never carries user-entered values.
    """
    return [
        DailyEntry(
            batch_number=batch.primary_number,
            fiscal_year=batch.fiscal_year,
            record_date=batch.start_date + timedelta(days=day - 1),
            day_number=day,
            day_label=day_label(day, batch.max_days),
            time_slot=time_slot,
        )
        for day in range(1, batch.max_days + 1)
    ]


class DailyRecordService:
    """Store access for daily records, keyed by (number, fiscal year, date, time slot)."""

    @staticmethod
    def get_records(batch_number: int, fiscal_year: int | None = None) -> list[DailyRecord]:
        query = DailyRecord.query.filter_by(shubo_number=batch_number)
        if fiscal_year is not None:
            query = query.filter_by(fiscal_year=fiscal_year)
        return query.order_by(DailyRecord.record_date, DailyRecord.time_slot).all()

    @staticmethod
    def ensure_records(batch: MergedBatch) -> list[DailyRecord]:
        """Return the batch's records, generating and saving defaults only when none exist."""
        existing = DailyRecordService.get_records(batch.primary_number, batch.fiscal_year)
        if existing:
            return existing

        time_slot = current_app.config.get("DEFAULT_TIME_SLOT", "")
        analysis_days = set(Settings.get_analysis_days().get(batch.batch_type, ()))
        records = []
        for entry in generate_daily_records(batch, time_slot):
            entry.is_analysis_day = entry.day_number in analysis_days
            records.append(DailyRecord.from_entry(entry))
        db.session.add_all(records)
        db.session.commit()
        logger.info("Generated %d daily records for %s", len(records), batch.display_name)
        return records

    @staticmethod
    def upsert_record(batch_number: int, fiscal_year: int, record_date: date, time_slot: str, fields: dict) -> DailyRecord:
        """Write *fields* onto the record for the key, creating it if missing."""
        record = DailyRecord.query.filter_by(
            shubo_number=batch_number,
            fiscal_year=fiscal_year,
            record_date=record_date,
            time_slot=time_slot,
        ).first()
        if not record:
            record = DailyRecord(
                shubo_number=batch_number,
                fiscal_year=fiscal_year,
                record_date=record_date,
                time_slot=time_slot,
            )
            db.session.add(record)

        for name, value in fields.items():
            if name in DailyRecord.EDITABLE_FIELDS or name == "day_number":
                setattr(record, name, value)

        db.session.commit()
        return record

    @staticmethod
    def delete_for_batches(batch_numbers, fiscal_year: int, commit: bool = True) -> int:
        """Drop records of the given batches (CSV update pruning only).

        Pending edits queued for those batches are discarded first so a later
        flush cannot bring a deleted record back.
        """
        if not batch_numbers:
            return 0
        numbers = set(batch_numbers)
        get_writer().discard(lambda key: key[0] in numbers and key[1] == fiscal_year)

        count = DailyRecord.query.filter(
            DailyRecord.shubo_number.in_(sorted(numbers)),
            DailyRecord.fiscal_year == fiscal_year,
        ).delete(synchronize_session=False)
        if commit:
            db.session.commit()
        return count


def coerce_fields(fields: dict) -> dict:
    """Type-coerce user edits; unknown fields are dropped."""
    cleaned = {}
    for name, value in fields.items():
        if name not in DailyRecord.EDITABLE_FIELDS:
            continue
        if name == "is_analysis_day":
            cleaned[name] = bool(value)
        elif name in ("day_label", "memo"):
            cleaned[name] = "" if value is None else str(value)
        elif value is None or value == "":
            cleaned[name] = None
        else:
            try:
                cleaned[name] = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"{name} must be a number")
    return cleaned


def init_writer(app) -> CoalescingWriter:
    """Create the app's daily-record writer; flushes run in an app context."""

    def flush(key, fields):
        batch_number, fiscal_year, record_date, time_slot = key
        # Request-time flushes reuse the caller's context and session
        with nullcontext() if has_app_context() else app.app_context():
            DailyRecordService.upsert_record(batch_number, fiscal_year, record_date, time_slot, fields)
        logger.debug("Flushed %s for %r", sorted(fields), key)

    writer = CoalescingWriter(
        flush,
        delay=app.config.get("RECORD_WRITE_DELAY", 1.0),
        scheduler=get_scheduler(),
        name="daily_record",
    )
    app.extensions["shubo_record_writer"] = writer
    atexit.register(writer.shutdown)
    return writer


def get_writer() -> CoalescingWriter:
    return current_app.extensions["shubo_record_writer"]
