from flask import Blueprint, jsonify, request

from judgeportal.errors import NotFound
from judgeportal.helpers.account import login_with_password, sync_user
from judgeportal.helpers.auth import LocalJwtProvider, current_user, get_auth_provider, login_required
from judgeportal.helpers.db import atomic
from judgeportal.helpers.payload import get_json_body
from judgeportal.helpers.serialize import judge_to_dict, user_to_dict

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.route("/token", methods=["POST"])
def issue_token():
    """
    Email + password -> bearer token.

    Only available with the local JWT provider; with Auth0 the client gets its
    token from the tenant instead.
    """
    provider = get_auth_provider()
    if not isinstance(provider, LocalJwtProvider):
        raise NotFound("Token endpoint is not enabled")

    data = get_json_body()
    with atomic():
        user = login_with_password(data.get("email"), data.get("password"))

    return jsonify({"token": provider.issue_token(user), "user": user_to_dict(user)})


@auth_bp.route("/sync-user", methods=["POST"])
def sync_user_route():
    """Create or refresh the local user row for the identity in the bearer token."""
    provider = get_auth_provider()
    claims = provider.claims_for(request)
    data = get_json_body()

    with atomic():
        user = provider.find_user(claims)
        created = False
        if user is None:
            user, created = sync_user(claims, data)

    return jsonify({"user": user_to_dict(user), "created": created}), 201 if created else 200


@auth_bp.route("/me")
@login_required
def me():
    user = current_user()
    body = user_to_dict(user)
    body["judge_profiles"] = [judge_to_dict(j) for j in user.judge_profiles]
    return jsonify({"user": body})
