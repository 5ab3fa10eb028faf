"""HTTP tests against the JSON blueprints."""

import io
import json

import pytest

from shubo import db
from shubo.models import DailyRecord, Settings
from shubo.services.daily_records import get_writer

from tests.conftest import FISCAL_YEAR


@pytest.fixture
def assigned(seeded, client):
    response = client.post("/batches/assign", json={
        "assignments": {"1": {"tank_id": "No.650", "batch_type": "速醸"}, "3": {"tank_id": "No.22"}},
    })
    assert response.status_code == 200
    return client


def test_dashboard_lists_merged_batches(assigned):
    response = assigned.get("/?date=2024-03-05")

    data = response.get_json()
    assert response.status_code == 200
    assert data["fiscal_year"] == FISCAL_YEAR
    batches = {b["display_name"]: b for b in data["batches"]}
    assert batches["1・2号"]["status"] == "active"
    assert batches["1・2号"]["day_number"] == 5
    assert batches["1・2号"]["period"] == 12
    assert batches["3号"]["status"] == "preparing"
    assert batches["3号"]["day_number"] is None
    assert [b["display_name"] for b in data["batches"]] == ["1・2号", "3号"]
    assert [b["display_name"] for b in data["todays_work"]["analysis"]] == ["1・2号"]


def test_dashboard_todays_work(assigned):
    data = assigned.get("/?date=2024-03-19").get_json()

    assert [b["display_name"] for b in data["todays_work"]["preparations"]] == ["3号"]
    assert data["todays_work"]["brewing"] == []

    data = assigned.get("/?date=2024-03-10").get_json()
    assert [b["display_name"] for b in data["todays_work"]["discharges"]] == ["1・2号"]


def test_dashboard_rejects_bad_date(client):
    response = client.get("/?date=tomorrow")

    assert response.status_code == 400
    assert "error" in response.get_json()


def test_environment_round_trip(client):
    response = client.post("/environment/2024-03-05", json={"temperature": "6.5", "humidity": 70})
    assert response.status_code == 200

    data = client.get("/environment/2024-03-05").get_json()
    assert data == {"date": "2024-03-05", "temperature": 6.5, "humidity": 70.0}


def test_raw_batches_show_pair_flags(seeded, client):
    data = client.get("/batches/raw").get_json()

    rows = {r["shubo_number"]: r for r in data["batches"]}
    assert rows[1]["is_dual_primary"]
    assert rows[2]["is_dual_secondary"]
    assert not rows[3]["is_dual_primary"] and not rows[3]["is_dual_secondary"]
    assert {t["tank_id"] for t in data["tanks"]} == {"No.650", "No.22"}


def test_assign_without_recipe_is_a_bad_request(seeded, client):
    response = client.post("/batches/assign", json={
        "assignments": {"3": {"tank_id": "No.22", "batch_type": "高温糖化"}},
    })

    assert response.status_code == 400
    assert "recipe" in response.get_json()["error"]


def test_records_generated_on_first_view(assigned):
    response = assigned.get("/batches/2/records")

    data = response.get_json()
    assert response.status_code == 200
    assert data["batch"]["display_name"] == "1・2号"
    assert len(data["records"]) == 12
    assert data["records"][0]["day_label"] == "brewing"
    assert data["records"][-1]["day_label"] == "discharge"
    assert {r["shubo_number"] for r in data["records"]} == {1}


def test_record_edits_coalesce_until_flushed(assigned):
    assigned.get("/batches/1/records")

    first = assigned.patch("/batches/1/records/3", json={"temperature1": "15.5"})
    second = assigned.patch("/batches/1/records/3", json={"temperature1": "16", "memo": "stirred"})

    assert first.status_code == 202
    assert second.get_json()["pending"] == {"day_number": 3, "temperature1": 16.0, "memo": "stirred"}
    assert DailyRecord.query.filter_by(day_number=3).one().temperature1 is None

    assert assigned.post("/batches/1/records/flush").get_json() == {"flushed": 1}
    db.session.expire_all()
    record = DailyRecord.query.filter_by(day_number=3).one()
    assert record.temperature1 == 16.0
    assert record.memo == "stirred"


def test_record_edit_validation(assigned):
    assert assigned.patch("/batches/1/records/99", json={"baume": 1}).status_code == 400
    assert assigned.patch("/batches/1/records/2", json={"baume": "sweet"}).status_code == 400
    assert assigned.patch("/batches/1/records/2", json={"shubo_number": 5}).status_code == 400
    assert get_writer().pending_keys() == []


def test_unknown_batch_is_not_found(assigned):
    assert assigned.get("/batches/42/records").status_code == 404
    assert assigned.post("/batches/42/unassign").status_code == 404


def test_records_csv_export(assigned):
    assigned.get("/batches/3/records")

    response = assigned.get("/batches/3/records.csv")

    lines = response.get_data(as_text=True).splitlines()
    assert response.mimetype == "text/csv"
    assert lines[0].startswith("shubo,day,date,label")
    assert lines[1].startswith("3号,1,2024-03-20,brewing")
    assert len(lines) == 10


def test_preparation(assigned):
    response = assigned.post("/batches/3/preparation", json={"ice_amount": 10, "after_brewing_kensyaku": 50})

    data = response.get_json()
    assert data["water_amount"] == 110
    assert data["preparation_water"] == 100
    assert data["after_brewing_capacity"] == 400


def test_discharge_per_end_date(assigned):
    response = assigned.post("/batches/1/discharge/1", json={
        "before_discharge_kensyaku": 100,
        "after_discharge_capacity": 700,
        "destination_tank": "No.7",
    })

    discharges = response.get_json()["discharges"]
    assert [d["end_date"] for d in discharges] == ["2024-03-10", "2024-03-12"]
    assert discharges[0]["discharge_amount"] is None
    assert discharges[1]["before_discharge_capacity"] == 800
    assert discharges[1]["discharge_amount"] == 100
    assert discharges[1]["expected_measurement"] == 90
    assert assigned.post("/batches/1/discharge/2", json={}).status_code == 400


def test_tanks_and_conversion(assigned):
    tanks = assigned.get("/tanks/?date=2024-03-05").get_json()["tanks"]
    by_id = {t["tank_id"]: t for t in tanks}
    assert by_id["No.650"]["current_status"] == "使用中"
    assert by_id["No.650"]["available_date"] == "2024-03-13"

    assert assigned.get("/tanks/No.650/convert?kensyaku=100").get_json()["capacity"] == 800
    assert assigned.get("/tanks/No.650/convert?capacity=790").get_json()["kensyaku"] == 100
    assert assigned.get("/tanks/No.999/convert?kensyaku=1").status_code == 404


def test_toggle_tank(seeded, client):
    data = client.post("/tanks/No.650/toggle").get_json()

    assert data["is_enabled"] is False
    assert [t["tank_id"] for t in client.get("/batches/raw").get_json()["tanks"]] == ["No.22"]
    assert client.post("/tanks/No.999/toggle").status_code == 404


def test_plan_upload(app, client):
    header = ",".join(f"c{i}" for i in range(27))
    row = ["0"] * 27
    row[0], row[1], row[22], row[23], row[24], row[25] = "8", "100", "100", "2024-03-01", "2024-03-10", "10"
    body = f"{header}\n{','.join(row)}\n".encode("utf-8")
    Settings.set_fiscal_year(FISCAL_YEAR)

    response = client.post(
        "/imports/raw",
        data={"file": (io.BytesIO(body), "plan.csv")},
        content_type="multipart/form-data",
    )

    assert response.get_json() == {"imported": 1, "fiscal_year": FISCAL_YEAR}
    assert client.get("/batches/raw").get_json()["batches"][0]["shubo_number"] == 8


def test_upload_requires_file(client):
    response = client.post("/imports/recipes", data={}, content_type="multipart/form-data")

    assert response.status_code == 400


def test_settings_fiscal_year_and_analysis_days(client):
    assert client.post("/settings/fiscal-year", json={"fiscal_year": 2024}).status_code == 200
    assert client.post("/settings/fiscal-year", json={"fiscal_year": "soon"}).status_code == 400

    response = client.post("/settings/analysis-days", json={"高温糖化": [7, 3, 3]})
    assert response.get_json()["analysis_days"]["高温糖化"] == [3, 7]

    data = client.get("/settings/").get_json()
    assert data["fiscal_year"] == 2024
    assert data["analysis_days"]["速醸"] == [2, 6, 9]


def test_backup_export_and_restore(assigned):
    exported = assigned.get("/settings/export")
    payload = json.loads(exported.get_data(as_text=True))
    assert len(payload["tables"]["shubo_configured_data"]) == 3

    assigned.post("/batches/3/unassign")
    response = assigned.post("/settings/import", json=payload)

    assert response.status_code == 200
    assert response.get_json()["restored"]["shubo_configured_data"] == 3
    names = [b["display_name"] for b in assigned.get("/batches/").get_json()["batches"]]
    assert "3号" in names


def test_restore_rejects_unknown_payload(client):
    response = client.post("/settings/import", json={"version": 99})

    assert response.status_code == 400


def test_assign_secondary_to_other_tank_is_a_bad_request(assigned):
    response = assigned.post("/batches/assign", json={"assignments": {"2": {"tank_id": "No.22"}}})

    assert response.status_code == 400
    assert "share tank" in response.get_json()["error"]


def test_unassigning_secondary_clears_the_pair(assigned):
    assert assigned.post("/batches/2/unassign").status_code == 200

    names = [b["display_name"] for b in assigned.get("/batches/").get_json()["batches"]]
    assert names == ["3号"]
