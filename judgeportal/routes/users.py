from flask import Blueprint, jsonify, request

from judgeportal.helpers.account import get_user_or_404, set_user_active, set_user_role
from judgeportal.helpers.auth import current_user, require_role
from judgeportal.helpers.db import atomic
from judgeportal.helpers.payload import get_json_body, parse_choice
from judgeportal.helpers.serialize import user_to_dict
from judgeportal.models import User
from judgeportal.models.enums import UserRole

users_bp = Blueprint("users", __name__, url_prefix="/users")


@users_bp.route("", methods=["GET"])
@require_role(UserRole.ADMIN)
def list_users():
    role = parse_choice(request.args.get("role"), "role", UserRole, required=False)
    q = User.query
    if role:
        q = q.filter(User.role == role)
    users = q.order_by(User.name.asc(), User.id.asc()).all()
    return jsonify({"users": [user_to_dict(u) for u in users]})


@users_bp.route("/<int:user_id>/role", methods=["PUT"])
@require_role(UserRole.ADMIN)
def update_role(user_id):
    user = get_user_or_404(user_id)
    data = get_json_body()
    with atomic():
        set_user_role(user, data.get("role"), changed_by=current_user().id)
    return jsonify({"user": user_to_dict(user)})


@users_bp.route("/<int:user_id>/active", methods=["PUT"])
@require_role(UserRole.ADMIN)
def update_active(user_id):
    """Body: {"isActive": bool}. Inactive users can no longer authenticate."""
    user = get_user_or_404(user_id)
    data = get_json_body()
    with atomic():
        set_user_active(user, data.get("isActive"), changed_by=current_user().id)
    return jsonify({"user": user_to_dict(user)})
