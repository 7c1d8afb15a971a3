from flask import Blueprint, jsonify, request

from judgeportal.helpers.activity import recent_activity
from judgeportal.helpers.auth import require_role
from judgeportal.helpers.payload import parse_id, parse_int
from judgeportal.helpers.serialize import activity_to_dict
from judgeportal.models.enums import UserRole

activity_bp = Blueprint("activity", __name__)


@activity_bp.route("/activity")
@require_role(UserRole.ADMIN, UserRole.MODERATOR)
def list_activity():
    event_id = parse_id(request.args.get("eventId"), "eventId", required=False)
    limit = parse_int(request.args.get("limit"), "limit", required=False, minimum=1)
    entries = recent_activity(event_id=event_id, limit=limit)
    return jsonify({"activity": [activity_to_dict(a) for a in entries]})
