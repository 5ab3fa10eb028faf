from datetime import date

from flask import Blueprint, jsonify, request

from shubo import db
from shubo.models import TankConfig, TankStatus
from shubo.services.assignment import tank_available_date
from shubo.services.capacity import capacity_from_gauge, gauge_from_capacity
from shubo.services.lifecycle import BatchStatus, batch_status
from shubo.services.state import get_state
from shubo.utils import optional_float, parse_iso_date

bp = Blueprint("tanks", __name__)


@bp.route("/", methods=["GET"])
def index():
    """Tank settings, largest first, with occupancy for ``?date=``."""
    try:
        today = parse_iso_date(request.args.get("date"), default=date.today())
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    state = get_state()
    in_use = {
        b.tank_id for b in state.merged
        if batch_status(b, today) == BatchStatus.ACTIVE
    }

    tanks = []
    for tank in state.tanks:
        available = tank_available_date(tank["tank_id"], state.configured)
        tanks.append({
            **tank,
            "current_status": TankStatus.IN_USE if tank["tank_id"] in in_use else TankStatus.EMPTY,
            "available_date": available.isoformat() if available else None,
        })
    return jsonify({"tanks": tanks})


@bp.route("/<tank_id>/toggle", methods=["POST"])
def toggle(tank_id):
    """Enable or disable a tank for assignment."""
    tank = TankConfig.query.filter_by(tank_id=tank_id).first()
    if not tank:
        return jsonify({"error": f"Unknown tank {tank_id}"}), 404

    data = request.get_json(silent=True) or {}
    if "is_enabled" in data:
        tank.is_enabled = bool(data["is_enabled"])
    else:
        tank.is_enabled = not tank.is_enabled
    db.session.commit()
    return jsonify(tank.to_dict())


@bp.route("/<tank_id>/convert", methods=["GET"])
def convert(tank_id):
    """``?kensyaku=`` to capacity, or ``?capacity=`` to the nearest kensyaku."""
    curves = get_state().curves
    if tank_id not in curves:
        return jsonify({"error": f"No calibration data for tank {tank_id}"}), 404

    try:
        kensyaku = optional_float(request.args.get("kensyaku"), "kensyaku")
        capacity = optional_float(request.args.get("capacity"), "capacity")
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    if kensyaku is not None:
        return jsonify({
            "tank_id": tank_id,
            "kensyaku": kensyaku,
            "capacity": capacity_from_gauge(curves, tank_id, kensyaku),
        })
    if capacity is not None:
        return jsonify({
            "tank_id": tank_id,
            "capacity": capacity,
            "kensyaku": gauge_from_capacity(curves, tank_id, capacity),
        })
    return jsonify({"error": "Give kensyaku or capacity"}), 400


@bp.route("/<tank_id>/conversions", methods=["GET"])
def conversions(tank_id):
    points = get_state().curves.get(tank_id)
    if points is None:
        return jsonify({"error": f"No calibration data for tank {tank_id}"}), 404
    return jsonify({
        "tank_id": tank_id,
        "points": [{"kensyaku": k, "capacity": c} for k, c in points],
    })
