# backend/wirebazaar/routes/system.py
"""
System health endpoint.

Reports the configured data backend and, when it is the database, whether
the database and the session table answer.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db, is_backend_configured
from ..models import Product, SessionToken
from ..services.order_storage import get_fallback_store
from wirebazaar.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    if not is_backend_configured():
        return {"status": "not_configured"}

    start_time = time.time()
    try:
        product_count = db.session.query(Product).count()
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "active_sessions": active_sessions,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_local_store_health() -> dict:
    store = get_fallback_store()
    try:
        count = len(store.list_orders())
    except (OSError, ValueError):
        current_app.logger.exception("Local order slot unreadable")
        return {"status": "unhealthy", "error": "Local order slot unreadable"}
    return {"status": "healthy", "details": {"path": store.path.name, "orders": count}}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy (or database not configured, running on the local slot)
    - 503: a configured dependency is unhealthy
    """
    database_health = check_database_health()
    local_health = check_local_store_health()

    unhealthy = any(c["status"] == "unhealthy" for c in (database_health, local_health))

    response = {
        "status": "unhealthy" if unhealthy else "healthy",
        "data_backend": current_app.config.get("DATA_BACKEND", "database"),
        "timestamp": to_utc_z(utcnow()),
        "checks": {
            "database": database_health,
            "local_orders": local_health,
        }
    }

    return response, 503 if unhealthy else 200
