import json
from datetime import datetime

from flask import Blueprint, Response, current_app, jsonify, request

from shubo.models import Settings
from shubo.services import backup as backup_service
from shubo.services.assignment import BATCH_TYPES
from shubo.services.state import get_state

bp = Blueprint("settings", __name__)


@bp.route("/", methods=["GET"])
def index():
    state = get_state()
    return jsonify({
        "fiscal_year": state.fiscal_year,
        "analysis_days": Settings.get_analysis_days(),
        "batch_types": list(BATCH_TYPES),
    })


@bp.route("/fiscal-year", methods=["POST"])
def fiscal_year():
    """Switch the brewing year shown and edited."""
    data = request.get_json(silent=True) or request.form
    try:
        year = int(data.get("fiscal_year"))
    except (TypeError, ValueError):
        return jsonify({"error": "Fiscal year must be a number"}), 400
    if year < 2000 or year > 2100:
        return jsonify({"error": "Fiscal year out of range"}), 400

    Settings.set_fiscal_year(year)
    return jsonify({"fiscal_year": year})


@bp.route("/analysis-days", methods=["POST"])
def analysis_days():
    """Body: ``{"<batch type>": [day, ...]}``."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({"error": "Expected a mapping of batch type to days"}), 400

    unknown = [t for t in data if t not in BATCH_TYPES]
    if unknown:
        return jsonify({"error": f"Unknown batch type: {', '.join(unknown)}"}), 400

    current = Settings.get_analysis_days()
    current.update(data)
    try:
        Settings.save_analysis_days(current)
    except (TypeError, ValueError):
        return jsonify({"error": "Analysis days must be whole numbers"}), 400
    return jsonify({"analysis_days": Settings.get_analysis_days()})


@bp.route("/export", methods=["GET"])
def export():
    """Download every table as JSON."""
    payload = backup_service.export_data()
    filename = f"shubo_backup_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
    return Response(
        json.dumps(payload, ensure_ascii=False, indent=2),
        mimetype="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@bp.route("/import", methods=["POST"])
def restore():
    """Restore from an uploaded backup file (or a JSON body)."""
    file = request.files.get("file")
    try:
        if file is not None and file.filename:
            payload = json.loads(file.read().decode("utf-8"))
        else:
            payload = request.get_json(silent=True)
        counts = backup_service.import_data(payload)
    except (UnicodeDecodeError, ValueError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Backup restore failed")
        return jsonify({"error": "Restore failed"}), 500

    return jsonify({"restored": counts})
