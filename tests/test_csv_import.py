"""Tests for CSV parsing and the import / plan-update service."""

import io
from datetime import date

import pytest

from shubo import db
from shubo.models import (
    BatchConfig,
    BrewingPreparation,
    CsvUpdate,
    DailyRecord,
    DischargeSchedule,
    RawBatch,
    TankConfig,
)
from shubo.services.csv_import import (
    CsvImportService,
    decode_upload,
    parse_date,
    parse_recipe_csv,
    parse_shubo_csv,
    parse_tank_csv,
    read_rows,
)
from shubo.services.daily_records import DailyRecordService, get_writer
from shubo.services.state import get_state

from tests.conftest import FISCAL_YEAR, configured


def plan_row(number, total_rice="100", start="45352", end="45361", days="10", scale="100"):
    row = [""] * 27
    row[0] = str(number)
    row[1] = scale
    row[2] = "3/20"
    row[3] = "普通酒"
    row[6] = "7"
    row[7] = "memo"
    row[11] = "山田錦"
    row[17] = "五百万石"
    row[22] = total_rice
    row[23] = start
    row[24] = end
    row[25] = days
    row[26] = "協会7号"
    return row


def test_read_rows_detects_delimiter():
    assert read_rows("a\tb\tc\n1\t2\t3\n") == [["a", "b", "c"], ["1", "2", "3"]]
    assert read_rows("a;b\n 1 ; 2 \n\n") == [["a", "b"], ["1", "2"]]
    assert read_rows("") == []


def test_parse_date_formats():
    assert parse_date("45352") == date(2024, 3, 1)
    assert parse_date("2024-03-01") == date(2024, 3, 1)
    assert parse_date("2024/03/01") == date(2024, 3, 1)
    assert parse_date("") is None
    assert parse_date("soon") is None


def test_parse_shubo_csv_maps_columns():
    rows = [["header"] * 27, plan_row(12)]

    (batch,) = parse_shubo_csv(rows)

    assert batch["shubo_number"] == 12
    assert batch["brewing_scale"] == 100
    assert batch["koji_rice_variety"] == "山田錦"
    assert batch["kake_rice_variety"] == "五百万石"
    assert batch["shubo_start_date"] == date(2024, 3, 1)
    assert batch["shubo_end_date"] == date(2024, 3, 10)
    assert batch["shubo_days"] == 10
    assert batch["yeast"] == "協会7号"
    assert batch["fiscal_year"] == 2023


def test_parse_shubo_csv_skips_short_and_riceless_rows():
    rows = [["header"] * 27, plan_row(1, total_rice="0"), ["2", "100", "x"], plan_row(3)]

    batches = parse_shubo_csv(rows, fiscal_year=2030)

    assert [b["shubo_number"] for b in batches] == [3]
    assert batches[0]["fiscal_year"] == 2030


def test_parse_recipe_csv():
    rows = [
        ["type", "scale", "total", "steamed", "koji", "water", "measurement", "lactic", "first_total"],
        ["速醸", "100", "100", "60", "40", "110", "180", "0.6", "25"],
    ]

    (recipe,) = parse_recipe_csv(rows)

    assert recipe["shubo_type"] == "速醸"
    assert recipe["recipe_brewing_scale"] == 100
    assert recipe["water"] == 110
    assert recipe["first_total_rice"] == 25
    assert recipe["final_water"] is None


def test_parse_tank_csv_reads_column_groups():
    rows = [
        ["タンク", "容量", "検尺", "No.", "容量", "検尺"],
        ["No.1", "1000", "0", "No.2", "500", "0"],
        ["No.1", "900", "10", "", "", ""],
    ]

    points = parse_tank_csv(rows)

    assert points == [
        {"tank_id": "No.1", "capacity": 1000.0, "kensyaku": 0.0},
        {"tank_id": "No.2", "capacity": 500.0, "kensyaku": 0.0},
        {"tank_id": "No.1", "capacity": 900.0, "kensyaku": 10.0},
    ]


def test_decode_upload_falls_back_to_shift_jis():
    raw = "タンク,容量\n".encode("cp932")

    assert decode_upload(io.BytesIO(raw)).startswith("タンク")


def test_tank_import_initialises_tank_settings(seeded):
    tanks = {t.tank_id: t for t in TankConfig.query.all()}

    assert tanks["No.650"].max_capacity == 1000
    assert tanks["No.650"].is_enabled
    assert tanks["No.22"].is_recommended
    assert [t["tank_id"] for t in get_state().tanks] == ["No.650", "No.22"]


def test_import_raw_batches_upserts(seeded):
    CsvImportService.import_raw_batches([
        {"shubo_number": 1, "fiscal_year": FISCAL_YEAR, "brewing_scale": 200},
    ])

    assert RawBatch.query.count() == 3
    assert RawBatch.query.filter_by(shubo_number=1).one().brewing_scale == 200


def test_preview_update_splits_by_update_date():
    existing = [configured(1, start=date(2024, 3, 1)), configured(2, start=date(2024, 3, 20))]
    new_rows = [{"shubo_number": 4, "shubo_start_date": date(2024, 3, 25)}]

    preview = CsvImportService.preview_update(date(2024, 3, 15), new_rows, existing)

    assert preview == {"to_update": [2, 4], "to_keep": [1]}


def test_apply_update_replaces_assignments_and_records(seeded):
    for number, start in ((1, date(2024, 3, 1)), (3, date(2024, 3, 20))):
        row = BatchConfig()
        row.apply(configured(number, start=start, days=9))
        db.session.add(row)
    db.session.commit()
    state = get_state()
    for batch in state.merged:
        DailyRecordService.ensure_records(batch)

    new_rows = [{"shubo_number": 5, "brewing_scale": 100, "shubo_start_date": date(2024, 3, 22),
                 "shubo_end_date": date(2024, 3, 30), "shubo_days": 9}]
    result = CsvImportService.apply_update(date(2024, 3, 15), new_rows, state, filename="plan.csv")

    assert result == {"to_update": [3, 5], "to_keep": [1]}
    assert [c.shubo_number for c in BatchConfig.query.all()] == [1]
    assert {r.shubo_number for r in DailyRecord.query.all()} == {1}
    assert sorted(r.shubo_number for r in RawBatch.query.all()) == [1, 2, 5]
    history = CsvUpdate.query.one()
    assert history.updated_count == 2
    assert history.kept_count == 1
    assert history.filename == "plan.csv"


def _assign_and_record(numbers_and_starts):
    for number, start in numbers_and_starts:
        row = BatchConfig()
        row.apply(configured(number, start=start, days=9))
        db.session.add(row)
    db.session.commit()
    state = get_state()
    for batch in state.merged:
        DailyRecordService.ensure_records(batch)
    return state


def test_failed_apply_update_keeps_existing_data(seeded, mocker):
    state = _assign_and_record(((1, date(2024, 3, 1)), (3, date(2024, 3, 20))))
    records_before = DailyRecord.query.count()
    mocker.patch.object(CsvImportService, "import_raw_batches", side_effect=RuntimeError("disk full"))

    with pytest.raises(RuntimeError):
        CsvImportService.apply_update(date(2024, 3, 15), [], state)
    db.session.rollback()

    assert DailyRecord.query.count() == records_before == 18
    assert sorted(c.shubo_number for c in BatchConfig.query.all()) == [1, 3]
    assert RawBatch.query.count() == 3
    assert CsvUpdate.query.count() == 0


def test_apply_update_prunes_schedules_and_pending_edits(seeded):
    state = _assign_and_record(((1, date(2024, 3, 1)), (3, date(2024, 3, 20))))
    db.session.add_all([
        BrewingPreparation(shubo_number=1, fiscal_year=FISCAL_YEAR, ice_amount=5),
        BrewingPreparation(shubo_number=3, fiscal_year=FISCAL_YEAR, ice_amount=5),
        DischargeSchedule(shubo_number=3, fiscal_year=FISCAL_YEAR, discharge_index=0),
    ])
    db.session.commit()
    writer = get_writer()
    kept_key = (1, FISCAL_YEAR, date(2024, 3, 2), "")
    writer.submit(kept_key, memo="kept")
    writer.submit((3, FISCAL_YEAR, date(2024, 3, 21), ""), memo="replaced")

    CsvImportService.apply_update(date(2024, 3, 15), [], state)

    assert [p.shubo_number for p in BrewingPreparation.query.all()] == [1]
    assert DischargeSchedule.query.count() == 0
    assert writer.pending_keys() == [kept_key]
    writer.discard(lambda key: True)
