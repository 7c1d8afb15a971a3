from flask import Blueprint, jsonify, request

from judgeportal.extensions import db
from judgeportal.helpers.auth import current_user, login_required, require_role
from judgeportal.helpers.db import atomic
from judgeportal.helpers.event import get_event_or_404, set_team_status
from judgeportal.helpers.leaderboard import team_score_stats
from judgeportal.helpers.payload import apply_updates, get_json_body, parse_bool_arg
from judgeportal.helpers.serialize import member_to_dict, team_to_dict
from judgeportal.helpers.team import (
    TEAM_UPDATE_FIELDS,
    add_member,
    check_team_unique,
    create_team,
    delete_team,
    get_member_or_404,
    get_team_or_404,
)
from judgeportal.models import Team
from judgeportal.models.enums import TeamStatus, UserRole

teams_bp = Blueprint("teams", __name__)


@teams_bp.route("/events/<int:event_id>/teams", methods=["GET"])
@login_required
def list_teams(event_id):
    """
    Teams in presentation order, each with score counters.

    ?activeOnly=true limits the list to the presenting team.
    """
    event = get_event_or_404(event_id)

    q = Team.query.filter(Team.event_id == event.id)
    if parse_bool_arg(request.args.get("activeOnly")):
        q = q.filter(Team.status == TeamStatus.ACTIVE.value)
    teams = q.order_by(Team.presentation_order.asc().nullslast(), Team.name.asc()).all()

    stats = team_score_stats(event.id)
    empty = {"total_scores": 0, "completed_scores": 0, "average_score": None}

    rows = []
    for t in teams:
        row = team_to_dict(t)
        row.update(stats.get(t.id, empty))
        rows.append(row)
    return jsonify({"teams": rows})


@teams_bp.route("/events/<int:event_id>/teams", methods=["POST"])
@require_role(UserRole.ADMIN)
def create_team_route(event_id):
    event = get_event_or_404(event_id)
    data = get_json_body()
    with atomic():
        team = create_team(event, data, created_by=current_user().id)
    return jsonify({"team": team_to_dict(team, with_members=True)}), 201


@teams_bp.route("/teams/<int:team_id>", methods=["GET"])
@login_required
def get_team(team_id):
    team = get_team_or_404(team_id)
    body = team_to_dict(team, with_members=True)
    body["event_name"] = team.event.name
    return jsonify({"team": body})


@teams_bp.route("/teams/<int:team_id>", methods=["PUT"])
@require_role(UserRole.ADMIN)
def update_team(team_id):
    team = get_team_or_404(team_id)
    data = get_json_body()

    with atomic():
        apply_updates(team, data, TEAM_UPDATE_FIELDS)
        check_team_unique(team.event_id, team.name, team.presentation_order, exclude_id=team.id)

    return jsonify({"team": team_to_dict(team, with_members=True)})


@teams_bp.route("/teams/<int:team_id>", methods=["DELETE"])
@require_role(UserRole.ADMIN)
def delete_team_route(team_id):
    team = get_team_or_404(team_id)
    with atomic():
        delete_team(team, deleted_by=current_user().id)
    return "", 204


@teams_bp.route("/teams/<int:team_id>/members", methods=["POST"])
@require_role(UserRole.ADMIN)
def add_member_route(team_id):
    team = get_team_or_404(team_id)
    data = get_json_body()
    with atomic():
        member = add_member(team, data)
    return jsonify({"member": member_to_dict(member)}), 201


@teams_bp.route("/teams/<int:team_id>/members/<int:member_id>", methods=["DELETE"])
@require_role(UserRole.ADMIN)
def remove_member(team_id, member_id):
    team = get_team_or_404(team_id)
    member = get_member_or_404(team, member_id)
    with atomic():
        db.session.delete(member)
    return "", 204


@teams_bp.route("/teams/<int:team_id>/status", methods=["PATCH"])
@require_role(UserRole.ADMIN, UserRole.MODERATOR)
def update_team_status(team_id):
    """Body: {"status": "waiting" | "active" | "completed"}."""
    team = get_team_or_404(team_id)
    data = get_json_body()
    with atomic():
        team = set_team_status(team, data.get("status"), user_id=current_user().id)
    return jsonify({"team": team_to_dict(team)})
