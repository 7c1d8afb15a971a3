import logging

from flask import Blueprint, jsonify, request
from sqlalchemy import select

from judgeportal.errors import ValidationError
from judgeportal.helpers.activity import log_activity
from judgeportal.helpers.auth import current_user, has_role, login_required, require_role
from judgeportal.helpers.db import atomic
from judgeportal.helpers.event import (
    EVENT_UPDATE_FIELDS,
    create_event,
    delete_event,
    event_counts,
    event_stats,
    get_event_or_404,
    get_team_in_event_or_404,
    set_active_team,
    set_judging_phase,
    validate_event,
)
from judgeportal.helpers.leaderboard import (
    build_leaderboard,
    event_insights,
    moderator_status,
    scoring_matrix,
    team_breakdown,
)
from judgeportal.helpers.payload import apply_updates, get_json_body, parse_choice, parse_id
from judgeportal.helpers.serialize import event_to_dict, team_to_dict
from judgeportal.models import Event, EventJudge
from judgeportal.models.enums import EventStatus, EventType, UserRole

logger = logging.getLogger(__name__)

events_bp = Blueprint("events", __name__, url_prefix="/events")

STAFF = (UserRole.ADMIN, UserRole.MODERATOR)


@events_bp.route("", methods=["GET"])
@login_required
def list_events():
    """
    Events, newest first.

    Query params: status, type. Judges only see events where they own a profile.
    """
    user = current_user()
    status = parse_choice(request.args.get("status"), "status", EventStatus, required=False)
    event_type = parse_choice(request.args.get("type"), "type", EventType, required=False)

    q = Event.query
    if status:
        q = q.filter(Event.status == status)
    if event_type:
        q = q.filter(Event.event_type == event_type)
    if not has_role(user, *STAFF):
        q = q.filter(Event.id.in_(
            select(EventJudge.event_id).where(EventJudge.user_id == user.id)
        ))

    events = q.order_by(Event.start_date.desc(), Event.id.desc()).all()
    counts = event_counts([e.id for e in events])
    return jsonify({"events": [event_to_dict(e, counts.get(e.id)) for e in events]})


@events_bp.route("/<int:event_id>", methods=["GET"])
@login_required
def get_event(event_id):
    event = get_event_or_404(event_id)
    body = event_to_dict(event, event_stats(event))
    body["current_active_team"] = team_to_dict(event.current_active_team) if event.current_active_team else None
    return jsonify({"event": body})


@events_bp.route("", methods=["POST"])
@require_role(UserRole.ADMIN)
def create_event_route():
    data = get_json_body()
    with atomic():
        event = create_event(data, created_by=current_user().id)
    logger.info("Event %s created", event.id)
    return jsonify({"event": event_to_dict(event)}), 201


@events_bp.route("/<int:event_id>", methods=["PUT"])
@require_role(*STAFF)
def update_event(event_id):
    event = get_event_or_404(event_id)
    data = get_json_body()

    with atomic():
        changed = apply_updates(event, data, EVENT_UPDATE_FIELDS)
        validate_event(event)
        log_activity(
            "Event Updated",
            event_id=event.id,
            user_id=current_user().id,
            description=", ".join(sorted(changed)),
            activity_type="event_updated",
            icon_name="Calendar",
        )

    return jsonify({"event": event_to_dict(event)})


@events_bp.route("/<int:event_id>", methods=["DELETE"])
@require_role(UserRole.ADMIN)
def delete_event_route(event_id):
    event = get_event_or_404(event_id)
    name = event.name
    with atomic():
        delete_event(event)
        log_activity(
            "Event Deleted",
            user_id=current_user().id,
            description=name,
            activity_type="event_deleted",
            icon_name="Trash",
            tone="warning",
        )
    logger.info("Event %s deleted", event_id)
    return "", 204


@events_bp.route("/<int:event_id>/insights")
@require_role(*STAFF)
def insights(event_id):
    event = get_event_or_404(event_id)
    return jsonify({"insights": event_insights(event)})


@events_bp.route("/<int:event_id>/leaderboard")
@login_required
def leaderboard(event_id):
    event = get_event_or_404(event_id)
    return jsonify({"event_id": event.id, "leaderboard": build_leaderboard(event.id)})


@events_bp.route("/<int:event_id>/teams/scores")
@require_role(*STAFF)
def teams_scores(event_id):
    event = get_event_or_404(event_id)
    return jsonify(scoring_matrix(event.id))


@events_bp.route("/<int:event_id>/teams/<int:team_id>/breakdown")
@require_role(*STAFF)
def team_breakdown_route(event_id, team_id):
    event = get_event_or_404(event_id)
    team = get_team_in_event_or_404(event, team_id)
    return jsonify(team_breakdown(event, team))


@events_bp.route("/<int:event_id>/moderator/status")
@require_role(*STAFF)
def moderator_status_route(event_id):
    event = get_event_or_404(event_id)
    return jsonify(moderator_status(event))


@events_bp.route("/<int:event_id>/team-active", methods=["PUT"])
@require_role(*STAFF)
def update_active_team(event_id):
    """
    Body: {"teamId": int | null}. null clears the active team.
    """
    event = get_event_or_404(event_id)
    data = get_json_body()
    if "teamId" not in data:
        raise ValidationError("teamId is required (null clears the active team)")
    team_id = parse_id(data.get("teamId"), "teamId", required=False)

    with atomic():
        team = set_active_team(event, team_id, user_id=current_user().id)

    event = get_event_or_404(event_id)
    return jsonify({
        "event": event_to_dict(event),
        "active_team": team_to_dict(team) if team else None,
    })


@events_bp.route("/<int:event_id>/judging-phase", methods=["PUT"])
@require_role(*STAFF)
def update_judging_phase(event_id):
    event = get_event_or_404(event_id)
    data = get_json_body()

    with atomic():
        set_judging_phase(event, data.get("judgingPhase"), user_id=current_user().id)

    return jsonify({"event": event_to_dict(event)})
