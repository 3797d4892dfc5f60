from flask import Blueprint, current_app, jsonify, request

from ..extensions import get_tracker
from ..services import analytics_service
from ..time_utils import today_iso
from ..validation import TrackerError


analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


def _period_args():
    mode = request.args.get("mode", "daily")
    reference_date = request.args.get("date") or today_iso(get_tracker().clock)
    return mode, reference_date


def _limit_arg():
    return request.args.get("n", current_app.config["STOCKBOOK_TOP_N"])


@analytics_bp.get("/revenue")
def revenue_route():
    try:
        mode, reference_date = _period_args()
        sales = analytics_service.filter_by_period(get_tracker().ledger.list(), mode, reference_date)
        series = analytics_service.revenue_series(sales, mode)
        return jsonify({
            "mode": mode,
            "date": reference_date,
            "series": [{"bucket": key, "revenue": str(value)} for key, value in series],
        }), 200
    except TrackerError as exc:
        return jsonify(exc.to_dict()), exc.status_code


@analytics_bp.get("/summary")
def summary_route():
    try:
        mode, reference_date = _period_args()
        sales = analytics_service.filter_by_period(get_tracker().ledger.list(), mode, reference_date)
        summary = analytics_service.period_summary(sales)
        return jsonify({"mode": mode, "date": reference_date, **summary.to_dict()}), 200
    except TrackerError as exc:
        return jsonify(exc.to_dict()), exc.status_code


@analytics_bp.get("/top-products")
def top_products_route():
    try:
        rows = analytics_service.top_products(get_tracker().ledger.list(), _limit_arg())
        return jsonify({"rows": [{"name": name, "quantity": qty} for name, qty in rows]}), 200
    except TrackerError as exc:
        return jsonify(exc.to_dict()), exc.status_code


@analytics_bp.get("/top-stock")
def top_stock_route():
    try:
        rows = analytics_service.top_stock_items(get_tracker().catalog.list(), _limit_arg())
        return jsonify({"rows": [{"item": item.to_dict(), "quantity": qty} for item, qty in rows]}), 200
    except TrackerError as exc:
        return jsonify(exc.to_dict()), exc.status_code


@analytics_bp.get("/dashboard")
def dashboard_route():
    try:
        mode, reference_date = _period_args()
        report = get_tracker().dashboard(mode, reference_date, _limit_arg())
        return jsonify(report), 200
    except TrackerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
