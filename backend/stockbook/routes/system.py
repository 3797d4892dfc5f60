# backend/stockbook/routes/system.py
"""
System health and version endpoints.

Provides a health check of the persistence store and version information
for deployment debugging.
"""

import sys
import time
from flask import Blueprint, current_app

from ..extensions import get_tracker
from ..validation import StorageError
from ..time_utils import today

system_bp = Blueprint("system", __name__)

API_VERSION = "1.0.0"


def check_store_health() -> dict:
    """
    Check that the tracker's store loads and the last save went through.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        tracker = get_tracker()
        items, sales = tracker.snapshot()
        elapsed_ms = (time.time() - start_time) * 1000

        details = {
            "backend": current_app.config["STOCKBOOK_STORE"],
            "items": len(items),
            "sales": len(sales),
            "editing_sale_id": tracker.builder.editing_id,
        }
        if tracker.last_save_error is not None:
            # Memory is still authoritative; the next save reconciles
            return {
                "status": "degraded",
                "latency_ms": round(elapsed_ms, 2),
                "warning": f"Last save failed: {tracker.last_save_error}",
                "details": details,
            }

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except StorageError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Store error"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded (a save failed but the session keeps working)
    - 503: the store cannot be loaded
    """
    store_health = check_store_health()
    http_status = 503 if store_health["status"] == "unhealthy" else 200

    response = {
        "status": store_health["status"],
        "date": today().isoformat(),
        "checks": {
            "store": store_health,
        }
    }

    return response, http_status


@system_bp.get("/version")
def version():
    """
    Version endpoint for deployment debugging.

    Does NOT expose secret keys or database credentials.
    """
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "store_backend": current_app.config["STOCKBOOK_STORE"],
    }
