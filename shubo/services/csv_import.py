import csv
import logging
from datetime import date, datetime, timedelta

from shubo import db
from shubo.models import (
    BatchConfig,
    BrewingPreparation,
    CsvUpdate,
    DischargeSchedule,
    RawBatch,
    Recipe,
    TankConfig,
    TankConversion,
)
from shubo.services.capacity import max_capacity
from shubo.services.daily_records import DailyRecordService
from shubo.services.lifecycle import fiscal_year_for

logger = logging.getLogger(__name__)

# Tanks suited to yeast starters; enabled when tank settings are first created
RECOMMENDED_TANKS = (
    "No.650", "No.552", "No.550", "No.57", "No.59", "No.60", "No.61",
    "No.801", "No.803", "No.506", "No.802", "No.804", "No.115",
    "No.502", "No.503", "No.504", "No.505", "No.301", "No.501",
    "No.22", "No.23", "No.508",
)

EXCEL_EPOCH = date(1899, 12, 30)


def read_rows(text: str) -> list[list[str]]:
    """Split CSV text into trimmed rows, guessing the delimiter from the header."""
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []

    delimiter = max((",", "\t", ";"), key=lambda sep: len(lines[0].split(sep)))
    reader = csv.reader(lines, delimiter=delimiter)
    return [[cell.strip() for cell in row] for row in reader]


def _int(value) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _float(value) -> float | None:
    if value is None or str(value).strip() == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _cell(row: list[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def parse_date(value) -> date | None:
    """Excel serial number (days since 1899-12-30) or a date string."""
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None

    try:
        serial = float(value)
    except ValueError:
        serial = None
    if serial is not None:
        return EXCEL_EPOCH + timedelta(days=int(serial))

    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def parse_shubo_csv(rows: list[list[str]], fiscal_year: int | None = None) -> list[dict]:
    """Map plan CSV rows (header first) to RawBatch fields.

    Short rows and rows without starter rice are skipped.
    """
    batches = []
    for row in rows[1:]:
        if len(row) < 10:
            continue
        total_rice = _int(_cell(row, 22))
        if total_rice == 0:
            continue

        start_date = parse_date(_cell(row, 23))
        batches.append({
            "shubo_number": _int(row[0]),
            "fiscal_year": fiscal_year or (fiscal_year_for(start_date) if start_date else None),
            "brewing_scale": _int(row[1]),
            "pour_date": _cell(row, 2),
            "brewing_category": _cell(row, 3),
            "tank_number": _int(_cell(row, 6)),
            "memo": _cell(row, 7),
            "koji_rice_variety": _cell(row, 11),
            "kake_rice_variety": _cell(row, 17),
            "shubo_total_rice": total_rice,
            "shubo_start_date": start_date,
            "shubo_end_date": parse_date(_cell(row, 24)),
            "shubo_days": _int(_cell(row, 25)),
            "yeast": _cell(row, 26),
        })
    return batches


_RECIPE_COLUMNS = (
    "recipe_total_rice", "steamed_rice", "koji_rice", "water", "measurement", "lactic_acid",
)
_STAGE_COLUMNS = tuple(
    f"{stage}_{name}"
    for stage in Recipe.STAGES
    for name in Recipe.STAGE_FIELDS
) + ("three_stage_total_rice", "water_ratio_to_final")


def parse_recipe_csv(rows: list[list[str]]) -> list[dict]:
    recipes = []
    for row in rows[1:]:
        if len(row) < 8:
            continue
        recipe = {
            "shubo_type": row[0],
            "recipe_brewing_scale": _int(row[1]),
        }
        for offset, name in enumerate(_RECIPE_COLUMNS, start=2):
            recipe[name] = _float(row[offset]) or 0
        for offset, name in enumerate(_STAGE_COLUMNS, start=8):
            recipe[name] = _float(_cell(row, offset))
        recipes.append(recipe)
    return recipes


def parse_tank_csv(rows: list[list[str]]) -> list[dict]:
    """Quick-reference sheet: repeating (tank, capacity, kensyaku) column groups."""
    if not rows:
        return []

    headers = rows[0]
    groups = [
        i for i in range(0, len(headers), 3)
        if headers[i] and ("タンク" in headers[i] or "No." in headers[i])
    ]

    points = []
    for row in rows[1:]:
        for i in groups:
            tank_id = _cell(row, i).strip()
            capacity = _float(_cell(row, i + 1))
            kensyaku = _float(_cell(row, i + 2))
            if tank_id and capacity is not None and kensyaku is not None:
                points.append({"tank_id": tank_id, "capacity": capacity, "kensyaku": kensyaku})
    return points


class CsvImportService:
    """Load plan, recipe and tank calibration CSVs into the database."""

    @classmethod
    def import_raw_batches(cls, batches: list[dict], commit: bool = True) -> int:
        """Upsert plan rows on (shubo_number, fiscal_year)."""
        count = 0
        for data in batches:
            if not data.get("fiscal_year"):
                continue
            row = RawBatch.query.filter_by(
                shubo_number=data["shubo_number"], fiscal_year=data["fiscal_year"]
            ).first()
            if not row:
                row = RawBatch()
                db.session.add(row)
            for name, value in data.items():
                setattr(row, name, value)
            count += 1
        if commit:
            db.session.commit()
        else:
            db.session.flush()
        logger.info("Imported %d planned batches", count)
        return count

    @classmethod
    def import_recipes(cls, recipes: list[dict]) -> int:
        for data in recipes:
            row = Recipe.query.filter_by(
                shubo_type=data["shubo_type"],
                recipe_brewing_scale=data["recipe_brewing_scale"],
            ).first()
            if not row:
                row = Recipe()
                db.session.add(row)
            for name, value in data.items():
                setattr(row, name, value)
        db.session.commit()
        logger.info("Imported %d recipes", len(recipes))
        return len(recipes)

    @classmethod
    def import_tank_conversions(cls, points: list[dict]) -> int:
        """Replace calibration points of every tank present in *points*."""
        tank_ids = {p["tank_id"] for p in points}
        if tank_ids:
            TankConversion.query.filter(
                TankConversion.tank_id.in_(sorted(tank_ids))
            ).delete(synchronize_session=False)

        seen = set()
        for p in points:
            key = (p["tank_id"], p["kensyaku"])
            if key in seen:
                continue
            seen.add(key)
            db.session.add(TankConversion(**p))
        db.session.commit()

        cls.initialize_tank_config()
        logger.info("Imported %d calibration points for %d tanks", len(seen), len(tank_ids))
        return len(seen)

    @classmethod
    def initialize_tank_config(cls) -> int:
        """Create tank settings for calibrated tanks that have none yet."""
        existing = {t.tank_id for t in TankConfig.query.all()}
        created = 0
        for tank_id, points in TankConversion.load_curves().items():
            if tank_id in existing or not points:
                continue
            capacity = max_capacity(points)
            recommended = tank_id in RECOMMENDED_TANKS
            db.session.add(TankConfig(
                tank_id=tank_id,
                display_name=f"{tank_id} ({capacity:g}L)",
                max_capacity=capacity,
                is_enabled=recommended,
                is_recommended=recommended,
            ))
            created += 1
        db.session.commit()
        return created

    # ------------------------------------------------------------------
    # Plan updates
    # ------------------------------------------------------------------

    @staticmethod
    def preview_update(update_date: date, new_batches: list[dict], configured) -> dict:
        """Split batch numbers into those replaced by the new plan and those kept.

        Batches starting on or after *update_date* are replaced.
        """
        to_update = set()
        to_keep = set()
        for batch in configured:
            if batch.start_date >= update_date:
                to_update.add(batch.number)
            else:
                to_keep.add(batch.number)

        for data in new_batches:
            start = data.get("shubo_start_date")
            if start is not None and start >= update_date:
                to_update.add(data["shubo_number"])

        return {"to_update": sorted(to_update), "to_keep": sorted(to_keep - to_update)}

    @classmethod
    def apply_update(cls, update_date: date, new_batches: list[dict], state, filename: str = None) -> dict:
        """Drop assignments and daily records of replaced batches, then load the new plan rows.

        Everything happens in one transaction; on error the caller rolls back
        and nothing has been removed.
        """
        fiscal_year = state.fiscal_year
        preview = cls.preview_update(update_date, new_batches, state.configured)
        numbers = preview["to_update"]

        if numbers:
            for model in (BatchConfig, BrewingPreparation, DischargeSchedule):
                model.query.filter(
                    model.shubo_number.in_(numbers),
                    model.fiscal_year == fiscal_year,
                ).delete(synchronize_session=False)
            DailyRecordService.delete_for_batches(numbers, fiscal_year, commit=False)

        incoming = [
            dict(data, fiscal_year=fiscal_year)
            for data in new_batches
            if data.get("shubo_start_date") is not None and data["shubo_start_date"] >= update_date
        ]
        incoming_numbers = {d["shubo_number"] for d in incoming}

        # Planned batches in the replaced range that the new plan no longer has
        RawBatch.query.filter(
            RawBatch.fiscal_year == fiscal_year,
            RawBatch.shubo_start_date >= update_date,
            RawBatch.shubo_number.notin_(sorted(incoming_numbers)),
        ).delete(synchronize_session=False)
        db.session.flush()

        cls.import_raw_batches(incoming, commit=False)

        db.session.add(CsvUpdate(
            update_date=update_date,
            updated_count=len(numbers),
            kept_count=len(preview["to_keep"]),
            filename=filename,
        ))
        db.session.commit()

        logger.info("Plan update from %s: %d updated, %d kept", update_date, len(numbers), len(preview["to_keep"]))
        return preview

    @staticmethod
    def history() -> list[CsvUpdate]:
        return CsvUpdate.query.order_by(CsvUpdate.executed_at.desc()).all()


def decode_upload(file) -> str:
    """Read an uploaded CSV as text (UTF-8 with BOM, falling back to Shift_JIS)."""
    raw = file.read()
    for encoding in ("utf-8-sig", "cp932"):
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ValueError("CSV must be UTF-8 or Shift_JIS encoded")

