from flask import Blueprint, current_app, jsonify, request

from shubo import db
from shubo.services.csv_import import (
    CsvImportService,
    decode_upload,
    parse_recipe_csv,
    parse_shubo_csv,
    parse_tank_csv,
    read_rows,
)
from shubo.services.state import get_state
from shubo.utils import parse_iso_date

bp = Blueprint("imports", __name__)


def _uploaded_rows():
    """Rows of the uploaded ``file``; raises ValueError when missing or unreadable."""
    file = request.files.get("file")
    if file is None or file.filename == "":
        raise ValueError("No file selected")
    if not file.filename.lower().endswith((".csv", ".txt")):
        raise ValueError(f"Invalid file type: {file.filename}. Must be .csv or .txt")
    rows = read_rows(decode_upload(file))
    if len(rows) < 2:
        raise ValueError(f"{file.filename} has no data rows")
    return file.filename, rows


@bp.route("/raw", methods=["POST"])
def upload_raw():
    """Load the brewing plan for the current fiscal year."""
    try:
        filename, rows = _uploaded_rows()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    fiscal_year = get_state().fiscal_year
    batches = parse_shubo_csv(rows, fiscal_year=fiscal_year)
    if not batches:
        return jsonify({"error": f"No batches found in {filename}"}), 400

    count = CsvImportService.import_raw_batches(batches)
    current_app.logger.info("Plan %s loaded: %d batches for %s", filename, count, fiscal_year)
    return jsonify({"imported": count, "fiscal_year": fiscal_year})


@bp.route("/recipes", methods=["POST"])
def upload_recipes():
    try:
        filename, rows = _uploaded_rows()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    recipes = parse_recipe_csv(rows)
    if not recipes:
        return jsonify({"error": f"No recipes found in {filename}"}), 400
    return jsonify({"imported": CsvImportService.import_recipes(recipes)})


@bp.route("/tanks", methods=["POST"])
def upload_tanks():
    try:
        filename, rows = _uploaded_rows()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    points = parse_tank_csv(rows)
    if not points:
        return jsonify({"error": f"No calibration points found in {filename}"}), 400
    return jsonify({"imported": CsvImportService.import_tank_conversions(points)})


@bp.route("/update/preview", methods=["POST"])
def update_preview():
    """Which batches a plan update from ``update_date`` would replace."""
    try:
        update_date = parse_iso_date(request.form.get("update_date"))
        if update_date is None:
            raise ValueError("update_date is required")
        _, rows = _uploaded_rows()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    state = get_state()
    new_batches = parse_shubo_csv(rows, fiscal_year=state.fiscal_year)
    preview = CsvImportService.preview_update(update_date, new_batches, state.configured)
    return jsonify({"update_date": update_date.isoformat(), **preview})


@bp.route("/update/apply", methods=["POST"])
def update_apply():
    """Replace assignments and records from ``update_date`` onward with the new plan."""
    try:
        update_date = parse_iso_date(request.form.get("update_date"))
        if update_date is None:
            raise ValueError("update_date is required")
        filename, rows = _uploaded_rows()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    state = get_state()
    new_batches = parse_shubo_csv(rows, fiscal_year=state.fiscal_year)
    try:
        result = CsvImportService.apply_update(update_date, new_batches, state, filename=filename)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Plan update from %s failed", update_date)
        return jsonify({"error": "Plan update failed"}), 500

    return jsonify({"update_date": update_date.isoformat(), **result})


@bp.route("/history", methods=["GET"])
def history():
    return jsonify({"history": [h.to_dict() for h in CsvImportService.history()]})
