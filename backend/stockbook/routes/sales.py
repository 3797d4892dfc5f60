# Overview: Flask API routes for the sale ledger; listing, edit flow and deletion.

from flask import Blueprint, request, jsonify, current_app

from ..extensions import get_tracker
from ..time_utils import parse_calendar_date
from ..validation import TrackerError, ValidationError


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _date_arg(name: str):
    value = request.args.get(name)
    if not value:
        return None
    parsed = parse_calendar_date(value)
    if parsed is None:
        raise ValidationError(f"{name} must be YYYY-MM-DD", details={name: value})
    return parsed


@sales_bp.get("/")
def list_sales_route():
    """List sales in insertion order, optionally limited to ?start=&end= (inclusive)."""
    try:
        sales = get_tracker().list_sales(_date_arg("start"), _date_arg("end"))
        return jsonify({"sales": [sale.to_dict() for sale in sales], "count": len(sales)}), 200

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    try:
        sale = get_tracker().get_sale(sale_id)
        return jsonify({"sale": sale.to_dict()}), 200

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code


@sales_bp.post("/<int:sale_id>/edit")
def begin_edit_route(sale_id: int):
    """
    Open a sale for editing.

    Its quantities go back into stock and it becomes the draft; finish with
    /edit/commit or /edit/cancel.
    """
    try:
        builder = get_tracker().begin_edit(sale_id)
        return jsonify({"draft": builder.to_dict()}), 200

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to begin sale edit")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/edit/commit")
def commit_edit_route():
    try:
        sale, saved = get_tracker().commit_edit()
        return jsonify({"sale": sale.to_dict(), "saved": saved}), 200

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to commit sale edit")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/edit/cancel")
def cancel_edit_route():
    """Abandon the edit; stock and the ledger return to their pre-edit state."""
    try:
        sale, saved = get_tracker().cancel_edit()
        return jsonify({"sale": sale.to_dict(), "saved": saved}), 200

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to cancel sale edit")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.delete("/<int:sale_id>")
def delete_sale_route(sale_id: int):
    """Delete a sale and put its quantities back into stock."""
    try:
        sale, saved = get_tracker().delete_sale(sale_id)
        return jsonify({"sale": sale.to_dict(), "saved": saved}), 200

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Internal server error"}), 500
