"""
Judge profiles, judging sessions and presence.

A judge profile is a named seat on one event owned by a user account; one
login can own several seats. Everything a judge does is keyed by profile id.
"""
from flask import Blueprint, jsonify, request

from judgeportal.errors import ValidationError
from judgeportal.extensions import db
from judgeportal.helpers.activity import log_activity
from judgeportal.helpers.auth import current_user, login_required, require_role
from judgeportal.helpers.db import atomic
from judgeportal.helpers.event import get_event_or_404
from judgeportal.helpers.judge import (
    create_judge_profile,
    get_judge_or_404,
    judge_profiles,
    resolve_acting_judge,
)
from judgeportal.helpers.payload import get_json_body, parse_id
from judgeportal.helpers.presence import (
    close_sessions,
    judge_presence,
    record_heartbeat,
    session_is_online,
    start_session,
)
from judgeportal.helpers.scoring import judge_progress
from judgeportal.helpers.serialize import judge_to_dict
from judgeportal.models.enums import UserRole

judges_bp = Blueprint("judges", __name__)


@judges_bp.route("/events/<int:event_id>/judges", methods=["GET"])
@require_role(UserRole.ADMIN, UserRole.MODERATOR)
def list_judges(event_id):
    event = get_event_or_404(event_id)
    return jsonify({"judges": judge_profiles(event.id)})


@judges_bp.route("/events/<int:event_id>/judges", methods=["POST"])
@require_role(UserRole.ADMIN)
def assign_judge(event_id):
    """Body: {"name": str, "userId": int}."""
    event = get_event_or_404(event_id)
    data = get_json_body()
    with atomic():
        judge = create_judge_profile(event, data, assigned_by=current_user().id)
    return jsonify({"judge": judge_to_dict(judge)}), 201


@judges_bp.route("/judges/<int:judge_id>", methods=["DELETE"])
@require_role(UserRole.ADMIN)
def remove_judge(judge_id):
    judge = get_judge_or_404(judge_id)
    with atomic():
        log_activity(
            "Judge Removed",
            event_id=judge.event_id,
            user_id=current_user().id,
            description=judge.name,
            activity_type="judge_removed",
            icon_name="UserMinus",
            tone="warning",
        )
        db.session.delete(judge)
    return "", 204


@judges_bp.route("/events/<int:event_id>/my-judges")
@login_required
def my_judges(event_id):
    """Profiles the caller owns on this event, for picking which seat to judge as."""
    event = get_event_or_404(event_id)
    return jsonify({"judges": judge_profiles(event.id, user_id=current_user().id)})


@judges_bp.route("/events/<int:event_id>/judges/online")
@login_required
def online_judges(event_id):
    event = get_event_or_404(event_id)
    return jsonify({"judges": judge_presence(event.id)})


@judges_bp.route("/events/<int:event_id>/my-progress")
@login_required
def my_progress(event_id):
    """?judgeId= selects which of the caller's profiles to report on."""
    event = get_event_or_404(event_id)
    judge_id = parse_id(request.args.get("judgeId"), "judgeId")
    judge = resolve_acting_judge(current_user(), event, judge_id)

    teams = judge_progress(event.id, judge)
    return jsonify({
        "judge": judge_to_dict(judge),
        "teams": teams,
        "completed": sum(1 for t in teams if t["status"] == "completed"),
        "total": len(teams),
    })


def _session_context():
    data = get_json_body()
    if data.get("eventId") is None or data.get("judgeId") is None:
        raise ValidationError("eventId and judgeId are required")

    event = get_event_or_404(parse_id(data.get("eventId"), "eventId"))
    judge = resolve_acting_judge(current_user(), event, parse_id(data.get("judgeId"), "judgeId"))
    return event, judge


def _session_body(session):
    return {
        "id": session.id,
        "event_id": session.event_id,
        "judge_id": session.judge_id,
        "logged_in_at": session.logged_in_at,
        "last_activity": session.last_activity,
        "logged_out_at": session.logged_out_at,
        "online": session_is_online(session),
    }


@judges_bp.route("/judge/session/start", methods=["POST"])
@login_required
def session_start():
    event, judge = _session_context()
    with atomic():
        session = start_session(event.id, judge.id)
        db.session.flush()
        body = _session_body(session)
    return jsonify({"session": body}), 201


@judges_bp.route("/judge/heartbeat", methods=["POST"])
@login_required
def heartbeat():
    event, judge = _session_context()
    with atomic():
        session = record_heartbeat(event.id, judge.id)
        db.session.flush()
        body = _session_body(session)
    return jsonify({"session": body})


@judges_bp.route("/judge/logout", methods=["POST"])
@login_required
def session_logout():
    event, judge = _session_context()
    with atomic():
        closed = close_sessions(event.id, judge.id)
    return jsonify({"closed": closed})
