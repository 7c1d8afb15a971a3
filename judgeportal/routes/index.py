import logging

from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from judgeportal.extensions import db

logger = logging.getLogger(__name__)

index_bp = Blueprint("index", __name__)


@index_bp.route("/health")
def health():
    """Liveness plus a one-query database check. No auth."""
    try:
        db.session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.warning("Health check could not reach the database", exc_info=True)
        db.session.rollback()
        database = "unavailable"

    status = 200 if database == "ok" else 503
    return jsonify({"status": "ok" if status == 200 else "degraded", "database": database}), status
