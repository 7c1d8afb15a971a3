import logging

from flask import Blueprint, jsonify

from judgeportal.helpers.auth import require_role
from judgeportal.helpers.schema import reset_schema, seed_demo_data
from judgeportal.models.enums import UserRole

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.route("/init-schema", methods=["POST"])
@require_role(UserRole.ADMIN)
def init_schema():
    """Drop and recreate every table. Destroys all data, including the caller's account."""
    logger.warning("Schema reset requested over HTTP")
    added = reset_schema()
    return jsonify({"message": "Schema initialised", "rubric_criteria": added})


@admin_bp.route("/seed-data", methods=["POST"])
@require_role(UserRole.ADMIN)
def seed_data():
    result = seed_demo_data()
    return jsonify(result), 201 if result["seeded"] else 200
