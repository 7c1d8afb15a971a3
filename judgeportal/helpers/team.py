from typing import Optional

from judgeportal.errors import ConflictError, NotFound, ValidationError
from judgeportal.extensions import db
from judgeportal.helpers.activity import log_activity
from judgeportal.helpers.payload import parse_email, parse_int, parse_str
from judgeportal.models import Event, Team, TeamMember


def get_team_or_404(team_id: int) -> Team:
    team = db.session.get(Team, team_id)
    if not team:
        raise NotFound("Team not found")
    return team


def get_member_or_404(team: Team, member_id: int) -> TeamMember:
    member = db.session.get(TeamMember, member_id)
    if not member or member.team_id != team.id:
        raise NotFound("Team member not found")
    return member


def _presentation_order(value, field):
    return parse_int(value, field, required=False, minimum=1)


TEAM_UPDATE_FIELDS = {
    "name": ("name", lambda v, f: parse_str(v, f, required=True, max_length=255)),
    "projectTitle": ("project_title", lambda v, f: parse_str(v, f, max_length=255)),
    "description": ("description", lambda v, f: parse_str(v, f)),
    "projectUrl": ("project_url", lambda v, f: parse_str(v, f)),
    "presentationOrder": ("presentation_order", _presentation_order),
}


def check_team_unique(event_id: int, name: str, presentation_order: Optional[int], exclude_id: Optional[int] = None) -> None:
    """Friendly 409s before the unique constraints get a chance to fire."""
    with db.session.no_autoflush:
        _check_team_unique(event_id, name, presentation_order, exclude_id)


def _check_team_unique(event_id, name, presentation_order, exclude_id):
    q = Team.query.filter(Team.event_id == event_id, Team.name == name)
    if exclude_id:
        q = q.filter(Team.id != exclude_id)
    if q.first():
        raise ConflictError("A team with this name already exists in this event")

    if presentation_order is not None:
        q = Team.query.filter(Team.event_id == event_id, Team.presentation_order == presentation_order)
        if exclude_id:
            q = q.filter(Team.id != exclude_id)
        if q.first():
            raise ConflictError("Another team already has this presentation order")


def _parse_member(raw, field: str) -> dict:
    if not isinstance(raw, dict):
        raise ValidationError(f"{field} must be an object")
    return {
        "name": parse_str(raw.get("name"), f"{field}.name", required=True, max_length=255),
        "email": parse_email(raw.get("email"), f"{field}.email", required=False),
    }


def create_team(event: Event, data: dict, created_by: Optional[int] = None) -> Team:
    """Team plus its members in one go; the caller commits."""
    name = parse_str(data.get("name"), "name", required=True, max_length=255)
    order = _presentation_order(data.get("presentationOrder"), "presentationOrder")

    raw_members = data.get("members") or []
    if not isinstance(raw_members, list):
        raise ValidationError("members must be a list")
    members = [_parse_member(m, f"members[{i}]") for i, m in enumerate(raw_members)]
    if event.max_team_size and len(members) > event.max_team_size:
        raise ValidationError(f"A team may have at most {event.max_team_size} members")

    if event.max_teams:
        current = Team.query.filter_by(event_id=event.id).count()
        if current >= event.max_teams:
            raise ConflictError("This event already has the maximum number of teams")

    check_team_unique(event.id, name, order)

    team = Team(
        event_id=event.id,
        name=name,
        project_title=parse_str(data.get("projectTitle"), "projectTitle", max_length=255),
        description=parse_str(data.get("description"), "description"),
        project_url=parse_str(data.get("projectUrl"), "projectUrl"),
        presentation_order=order,
    )
    db.session.add(team)
    db.session.flush()

    for m in members:
        db.session.add(TeamMember(team_id=team.id, **m))

    log_activity(
        "Team Created",
        event_id=event.id,
        user_id=created_by,
        description=team.name,
        activity_type="team_created",
        icon_name="Users",
    )
    return team


def add_member(team: Team, data: dict) -> TeamMember:
    member = _parse_member(data, "member")
    event = team.event
    count = TeamMember.query.filter_by(team_id=team.id).count()
    if event.max_team_size and count >= event.max_team_size:
        raise ConflictError(f"A team may have at most {event.max_team_size} members")

    row = TeamMember(team_id=team.id, **member)
    db.session.add(row)
    db.session.flush()
    return row


def delete_team(team: Team, deleted_by: Optional[int] = None) -> None:
    """Members, submissions, scores and comments go with it via ON DELETE CASCADE."""
    event = team.event
    if event.current_active_team_id == team.id:
        event.current_active_team_id = None
        db.session.flush()

    log_activity(
        "Team Deleted",
        event_id=event.id,
        user_id=deleted_by,
        description=team.name,
        activity_type="team_deleted",
        icon_name="Trash",
        tone="warning",
    )
    db.session.delete(team)
