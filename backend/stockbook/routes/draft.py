# Overview: Flask API routes for the in-progress sale draft.

from flask import Blueprint, request, jsonify, current_app

from ..extensions import get_tracker
from ..validation import TrackerError, ValidationError


draft_bp = Blueprint("draft", __name__, url_prefix="/api/draft")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


def _draft_response(saved: bool | None = None, status: int = 200):
    body = {"draft": get_tracker().builder.to_dict()}
    if saved is not None:
        body["saved"] = saved
    return jsonify(body), status


@draft_bp.get("/")
def get_draft_route():
    return _draft_response()


@draft_bp.post("/lines")
def add_line_route():
    """Add one unit of a catalog item to the draft."""
    try:
        data = _json_body()
        item_id = data.get("item_id")
        if item_id is None:
            return jsonify({"error": "item_id required"}), 400

        get_tracker().add_to_draft(item_id)
        return _draft_response(status=201)

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add draft line")
        return jsonify({"error": "Internal server error"}), 500


@draft_bp.patch("/lines/<int:index>")
def change_line_route(index: int):
    """Change a line's quantity by {"delta": n}."""
    try:
        data = _json_body()
        if "delta" not in data:
            return jsonify({"error": "delta required"}), 400

        get_tracker().change_line_quantity(index, data["delta"])
        return _draft_response()

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to change draft line")
        return jsonify({"error": "Internal server error"}), 500


@draft_bp.delete("/lines/<int:index>")
def remove_line_route(index: int):
    try:
        get_tracker().remove_line(index)
        return _draft_response()

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to remove draft line")
        return jsonify({"error": "Internal server error"}), 500


@draft_bp.put("/date")
def set_date_route():
    try:
        data = _json_body()
        get_tracker().set_draft_date(data.get("date"))
        return _draft_response()

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to set draft date")
        return jsonify({"error": "Internal server error"}), 500


@draft_bp.post("/reset")
def reset_draft_route():
    """Clear the draft. An open sale edit is cancelled, not committed."""
    try:
        saved = get_tracker().reset_draft()
        return _draft_response(saved=saved)

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to reset draft")
        return jsonify({"error": "Internal server error"}), 500


@draft_bp.post("/commit")
def commit_draft_route():
    """
    Complete the sale: stock is re-checked and decremented for every line,
    then the sale is recorded (or replaces the one being edited).
    """
    try:
        tracker = get_tracker()
        was_editing = tracker.builder.is_editing
        sale, saved = tracker.commit_draft()
        return jsonify({"sale": sale.to_dict(), "saved": saved}), 200 if was_editing else 201

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to commit sale")
        return jsonify({"error": "Internal server error"}), 500
