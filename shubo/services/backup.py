"""JSON backup / restore of every table, and CSV export of daily records."""

import csv
import io
import logging
from datetime import date, datetime

from shubo import db

logger = logging.getLogger(__name__)

BACKUP_VERSION = 1

# Table -> natural key used to upsert on restore
BACKUP_KEYS = {
    "shubo_raw_data": ("shubo_number", "fiscal_year"),
    "shubo_configured_data": ("shubo_number", "fiscal_year"),
    "shubo_recipe_data": ("shubo_type", "recipe_brewing_scale"),
    "tank_conversions": ("tank_id", "kensyaku"),
    "shubo_tank_config": ("tank_id",),
    "shubo_daily_records": ("shubo_number", "fiscal_year", "record_date", "time_slot"),
    "shubo_daily_environment": ("date",),
    "shubo_brewing_preparation": ("shubo_number", "fiscal_year"),
    "shubo_discharge_schedule": ("shubo_number", "fiscal_year", "discharge_index"),
    "settings": ("key",),
    "csv_update_history": ("update_date", "executed_at"),
}

_SKIPPED_COLUMNS = ("id", "updated_at")


def _models() -> dict:
    from shubo.models import (
        BatchConfig, BrewingPreparation, CsvUpdate, DailyEnvironment, DailyRecord,
        DischargeSchedule, RawBatch, Recipe, Settings, TankConfig, TankConversion,
    )

    models = (
        RawBatch, BatchConfig, Recipe, TankConversion, TankConfig, DailyRecord,
        DailyEnvironment, BrewingPreparation, DischargeSchedule, Settings, CsvUpdate,
    )
    return {model.__tablename__: model for model in models}


def _columns(model):
    return [c for c in model.__table__.columns if c.name not in _SKIPPED_COLUMNS]


def _dump(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _load(column, value):
    if value is None:
        return None
    if isinstance(column.type, db.DateTime):
        return datetime.fromisoformat(value)
    if isinstance(column.type, db.Date):
        return date.fromisoformat(value[:10])
    return value


def export_data() -> dict:
    """Every backed-up table as lists of column dicts."""
    tables = {}
    for name, model in _models().items():
        columns = _columns(model)
        tables[name] = [
            {c.name: _dump(getattr(row, c.name)) for c in columns}
            for row in model.query.all()
        ]
    return {
        "version": BACKUP_VERSION,
        "exported_at": datetime.now().isoformat(),
        "tables": tables,
    }


def import_data(payload: dict) -> dict:
    """Upsert rows from an ``export_data()`` payload. Returns counts per table.

    Raises ValueError for an unrecognised payload; the whole restore is one
    transaction.
    """
    if not isinstance(payload, dict) or payload.get("version") != BACKUP_VERSION:
        raise ValueError("Unsupported backup file")

    tables = payload.get("tables") or {}
    models = _models()
    counts = {}
    try:
        for name, rows in tables.items():
            model = models.get(name)
            if model is None:
                logger.warning("Skipping unknown table %s in backup", name)
                continue
            columns = {c.name: c for c in _columns(model)}
            keys = BACKUP_KEYS[name]

            for data in rows:
                values = {k: _load(columns[k], v) for k, v in data.items() if k in columns}
                row = model.query.filter_by(**{k: values.get(k) for k in keys}).first()
                if not row:
                    row = model()
                    db.session.add(row)
                for k, v in values.items():
                    setattr(row, k, v)
            db.session.flush()
            counts[name] = len(rows)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Restored backup: %s", counts)
    return counts


RECORD_CSV_HEADER = [
    "shubo",
    "day",
    "date",
    "label",
    "temperature1",
    "temperature2",
    "temperature3",
    "baume",
    "acidity",
    "alcohol",
    "analysis_day",
    "memo",
]


def records_csv(batch, records) -> str:
    """Daily records of one merged batch as CSV text."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(RECORD_CSV_HEADER)
    for r in records:
        writer.writerow([
            batch.display_name,
            r.day_number,
            r.record_date.isoformat(),
            r.day_label or "",
            "" if r.temperature1 is None else r.temperature1,
            "" if r.temperature2 is None else r.temperature2,
            "" if r.temperature3 is None else r.temperature3,
            "" if r.baume is None else r.baume,
            "" if r.acidity is None else r.acidity,
            "" if r.alcohol is None else r.alcohol,
            "1" if r.is_analysis_day else "",
            r.memo or "",
        ])
    return buf.getvalue()
