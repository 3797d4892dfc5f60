# Overview: Flask API routes for catalog items; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..extensions import get_tracker
from ..validation import TrackerError, ValidationError, parse_optional_id


items_bp = Blueprint("items", __name__, url_prefix="/api/items")


@items_bp.get("/")
def list_items_route():
    """List catalog items, optionally filtered by ?q= on name or category."""
    tracker = get_tracker()
    items = tracker.list_items(request.args.get("q"))
    return jsonify({"items": [item.to_dict() for item in items], "count": len(items)}), 200


@items_bp.get("/<int:item_id>")
def get_item_route(item_id: int):
    try:
        item = get_tracker().catalog.require(item_id)
        return jsonify({"item": item.to_dict()}), 200

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code


@items_bp.post("/")
def save_item_route():
    """
    Create an item, or replace one when the body carries a known id.

    Returns 201 on create, 200 on update.
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("JSON object body required")

        tracker = get_tracker()
        item_id = parse_optional_id(data.get("id"))
        created = item_id is None or item_id not in tracker.catalog
        item, saved = tracker.save_item(data)
        return jsonify({"item": item.to_dict(), "saved": saved}), 201 if created else 200

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to save item")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.put("/<int:item_id>")
def update_item_route(item_id: int):
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("JSON object body required")

        tracker = get_tracker()
        tracker.catalog.require(item_id)
        item, saved = tracker.save_item({**data, "id": item_id})
        return jsonify({"item": item.to_dict(), "saved": saved}), 200

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update item")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.delete("/<int:item_id>")
def delete_item_route(item_id: int):
    """Delete an item. Past sales keep their own copy of its name and price."""
    try:
        deleted, saved = get_tracker().delete_item(item_id)
        return jsonify({"deleted": deleted, "saved": saved}), 200

    except TrackerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete item")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.get("/<int:item_id>/available")
def available_quantity_route(item_id: int):
    qty = get_tracker().available_quantity(item_id)
    return jsonify({"item_id": item_id, "available_quantity": qty}), 200
