from datetime import date, timedelta

from flask import Blueprint, Response, current_app, jsonify, request

from shubo.services.assignment import BATCH_TYPES, AssignmentService
from shubo.services.backup import records_csv
from shubo.services.daily_records import DailyRecordService, DayLabel, coerce_fields, get_writer
from shubo.services.schedule import ScheduleService
from shubo.services.state import get_state
from shubo.utils import optional_float, parse_iso_date

bp = Blueprint("batches", __name__)


def _merged_or_404(number):
    batch = get_state().find_merged(number)
    if batch is None:
        return None, (jsonify({"error": f"Batch {number} is not assigned"}), 404)
    return batch, None


def _flush_batch(batch) -> int:
    """Write out pending record edits of *batch* so reads see them."""
    writer = get_writer()
    count = 0
    for key in writer.pending_keys():
        if key[0] == batch.primary_number and key[1] == batch.fiscal_year:
            count += writer.flush(key)
    return count


@bp.route("/", methods=["GET"])
def index():
    """Merged batches with status for ``?date=`` (default today)."""
    try:
        today = parse_iso_date(request.args.get("date"), default=date.today())
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    state = get_state()
    return jsonify({
        "fiscal_year": state.fiscal_year,
        "batches": ScheduleService.batch_list(state.merged, today),
    })


# ----------------------------------------------------------------------
# Tank / type assignment
# ----------------------------------------------------------------------

@bp.route("/raw", methods=["GET"])
def raw():
    """Planned batches with dual-pair flags and current assignment."""
    state = get_state()
    return jsonify({
        "fiscal_year": state.fiscal_year,
        "batch_types": list(BATCH_TYPES),
        "tanks": state.enabled_tanks(),
        "batches": AssignmentService.assignment_rows(state),
    })


@bp.route("/assign", methods=["POST"])
def assign():
    """Body: ``{"assignments": {"<number>": {"tank_id": ..., "batch_type": ...}}}``."""
    data = request.get_json(silent=True) or {}
    raw_assignments = data.get("assignments") or {}
    try:
        assignments = {int(number): choice for number, choice in raw_assignments.items()}
    except (TypeError, ValueError):
        return jsonify({"error": "Batch numbers must be integers"}), 400
    if not assignments:
        return jsonify({"error": "No assignments given"}), 400

    try:
        built = AssignmentService.assign(get_state(), assignments)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "assigned": [
            {"shubo_number": b.number, "tank_id": b.tank_id, "display_name": b.display_name}
            for b in built
        ],
    })


@bp.route("/<int:number>/unassign", methods=["POST"])
def unassign(number):
    state = get_state()
    if not AssignmentService.unassign(number, state.fiscal_year, state.planned_pairings):
        return jsonify({"error": f"Batch {number} is not assigned"}), 404
    return jsonify({"success": True})


# ----------------------------------------------------------------------
# Daily records
# ----------------------------------------------------------------------

@bp.route("/<int:number>/records", methods=["GET"])
def records(number):
    """Daily records of the merged batch, generating defaults on first view."""
    batch, error = _merged_or_404(number)
    if error:
        return error

    _flush_batch(batch)
    rows = DailyRecordService.ensure_records(batch)
    return jsonify({
        "batch": batch.to_dict(),
        "day_labels": list(DayLabel.OPTIONS),
        "records": [r.to_dict() for r in rows],
    })


@bp.route("/<int:number>/records/<int:day>", methods=["PATCH"])
def update_record(number, day):
    """Queue an edit of one day's record; written after a short quiet period."""
    batch, error = _merged_or_404(number)
    if error:
        return error
    if day < 1 or day > batch.max_days:
        return jsonify({"error": f"Day {day} is outside 1..{batch.max_days}"}), 400

    data = request.get_json(silent=True) or {}
    time_slot = data.pop("time_slot", None)
    if time_slot is None:
        time_slot = current_app.config.get("DEFAULT_TIME_SLOT", "")
    try:
        fields = coerce_fields(data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    if not fields:
        return jsonify({"error": "No editable fields given"}), 400

    record_date = batch.start_date + timedelta(days=day - 1)
    key = (batch.primary_number, batch.fiscal_year, record_date, time_slot)
    writer = get_writer()
    writer.submit(key, day_number=day, **fields)

    return jsonify({"queued": True, "pending": writer.pending(key)}), 202


@bp.route("/<int:number>/records/flush", methods=["POST"])
def flush_records(number):
    batch, error = _merged_or_404(number)
    if error:
        return error
    return jsonify({"flushed": _flush_batch(batch)})


@bp.route("/<int:number>/records.csv", methods=["GET"])
def export_records(number):
    """Download the batch's daily records as CSV."""
    batch, error = _merged_or_404(number)
    if error:
        return error

    _flush_batch(batch)
    rows = DailyRecordService.get_records(batch.primary_number, batch.fiscal_year)
    filename = f"shubo_{batch.primary_number}_{batch.fiscal_year}_records.csv"
    return Response(
        records_csv(batch, rows),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ----------------------------------------------------------------------
# Brewing preparation / discharge
# ----------------------------------------------------------------------

@bp.route("/<int:number>/preparation", methods=["GET", "POST"])
def preparation(number):
    batch, error = _merged_or_404(number)
    if error:
        return error

    state = get_state()
    if request.method == "POST":
        data = request.get_json(silent=True) or {}
        try:
            ScheduleService.save_preparation(
                batch,
                ice_amount=optional_float(data.get("ice_amount"), "ice_amount"),
                after_brewing_kensyaku=optional_float(
                    data.get("after_brewing_kensyaku"), "after_brewing_kensyaku"
                ),
            )
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

    return jsonify(ScheduleService.preparation(batch, state.curves))


@bp.route("/<int:number>/discharge", methods=["GET"])
def discharge(number):
    batch, error = _merged_or_404(number)
    if error:
        return error
    return jsonify({
        "batch": batch.to_dict(),
        "discharges": ScheduleService.discharges(batch, get_state().curves),
    })


@bp.route("/<int:number>/discharge/<int:index>", methods=["POST"])
def save_discharge(number, index):
    batch, error = _merged_or_404(number)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    try:
        fields = {}
        for name in ("before_discharge_kensyaku", "after_discharge_capacity", "ice_amount"):
            if name in data:
                fields[name] = optional_float(data[name], name)
        if "destination_tank" in data:
            fields["destination_tank"] = (data["destination_tank"] or "").strip() or None
        ScheduleService.save_discharge(batch, index, fields)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"discharges": ScheduleService.discharges(batch, get_state().curves)})
