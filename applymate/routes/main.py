"""
Main Routes Blueprint - health check
"""

import logging

from flask import Blueprint, jsonify

from applymate.database import check_db, utc_now

logger = logging.getLogger(__name__)

main_bp = Blueprint("main", __name__)


@main_bp.route("/api/health")
def health():
    """
    Liveness check, public.

    Returns 200 when the database answers, 503 otherwise.
    """
    db_ok = check_db()
    body = {
        "status": "ok" if db_ok else "degraded",
        "database": "ok" if db_ok else "unreachable",
        "timestamp": utc_now(),
    }
    return jsonify(body), 200 if db_ok else 503
