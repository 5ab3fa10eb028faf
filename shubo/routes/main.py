from datetime import date

from flask import Blueprint, jsonify, request

from shubo.models import DailyEnvironment
from shubo.services.schedule import ScheduleService
from shubo.services.state import get_state
from shubo.utils import optional_float, parse_iso_date

bp = Blueprint("main", __name__)


@bp.route("/")
def dashboard():
    """Batch list and today's work for ``?date=`` (default today)."""
    try:
        today = parse_iso_date(request.args.get("date"), default=date.today())
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    state = get_state()
    work = ScheduleService.todays_work(state.merged, today)
    environment = DailyEnvironment.query.filter_by(date=today).first()

    return jsonify({
        "date": today.isoformat(),
        "fiscal_year": state.fiscal_year,
        "batches": ScheduleService.batch_list(state.merged, today),
        "todays_work": {name: [b.to_dict() for b in batches] for name, batches in work.items()},
        "environment": environment.to_dict() if environment else None,
    })


@bp.route("/environment/<day>", methods=["GET", "POST"])
def environment(day):
    """Room temperature and humidity for a day."""
    try:
        day = parse_iso_date(day)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    if request.method == "POST":
        data = request.get_json(silent=True) or request.form
        try:
            row = DailyEnvironment.upsert(
                day,
                temperature=optional_float(data.get("temperature"), "temperature"),
                humidity=optional_float(data.get("humidity"), "humidity"),
            )
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        return jsonify(row.to_dict())

    row = DailyEnvironment.query.filter_by(date=day).first()
    if not row:
        return jsonify({"date": day.isoformat(), "temperature": None, "humidity": None})
    return jsonify(row.to_dict())
