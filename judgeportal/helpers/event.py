"""
Event lookups, the judging-phase state machine and the active-team switch.
"""
import logging
from typing import Optional

from sqlalchemy import case, delete, func, update

from judgeportal.errors import NotFound, ScoringClosed, ValidationError
from judgeportal.extensions import db
from judgeportal.helpers.activity import log_activity
from judgeportal.helpers.payload import (
    parse_choice,
    parse_datetime,
    parse_id,
    parse_int,
    parse_str,
)
from judgeportal.models import Event, EventJudge, ScoreSubmission, Sponsor, Team
from judgeportal.models.enums import EventStatus, EventType, JudgingPhase, TeamStatus

logger = logging.getLogger(__name__)

PHASE_ORDER = {
    JudgingPhase.NOT_STARTED.value: 0,
    JudgingPhase.IN_PROGRESS.value: 1,
    JudgingPhase.ENDED.value: 2,
}


def get_event_or_404(event_id: int) -> Event:
    event = db.session.get(Event, event_id)
    if not event:
        raise NotFound("Event not found")
    return event


def get_team_in_event_or_404(event: Event, team_id: int) -> Team:
    team = db.session.get(Team, team_id)
    if not team or team.event_id != event.id:
        raise NotFound("Team not found in this event")
    return team


def _parse_sponsor_id(value, field):
    sponsor_id = parse_id(value, field, required=False)
    if sponsor_id is not None and not db.session.get(Sponsor, sponsor_id):
        raise ValidationError("Unknown sponsor")
    return sponsor_id


def _required_str(max_length):
    return lambda value, field: parse_str(value, field, required=True, max_length=max_length)


def _optional_str(max_length=None):
    return lambda value, field: parse_str(value, field, required=False, max_length=max_length)


def _positive_int(value, field):
    return parse_int(value, field, required=True, minimum=1)


# request key -> (column, parser). Nothing outside this map is writable via PUT.
EVENT_UPDATE_FIELDS = {
    "name": ("name", _required_str(255)),
    "description": ("description", _optional_str()),
    "eventType": ("event_type", lambda v, f: parse_choice(v, f, EventType)),
    "status": ("status", lambda v, f: parse_choice(v, f, EventStatus)),
    "location": ("location", _optional_str(255)),
    "startDate": ("start_date", lambda v, f: parse_datetime(v, f, required=True)),
    "endDate": ("end_date", lambda v, f: parse_datetime(v, f, required=True)),
    "registrationDeadline": ("registration_deadline", lambda v, f: parse_datetime(v, f)),
    "maxTeamSize": ("max_team_size", _positive_int),
    "minTeamSize": ("min_team_size", _positive_int),
    "maxTeams": ("max_teams", lambda v, f: parse_int(v, f, required=False, minimum=1)),
    "sponsorId": ("sponsor_id", _parse_sponsor_id),
}


def validate_event(event: Event) -> None:
    """Cross-field checks, run after create and after every update."""
    if event.start_date and event.end_date and event.end_date < event.start_date:
        raise ValidationError("endDate must not be before startDate")
    if event.min_team_size and event.max_team_size and event.min_team_size > event.max_team_size:
        raise ValidationError("minTeamSize must not exceed maxTeamSize")


def create_event(data: dict, created_by: Optional[int] = None) -> Event:
    event = Event(
        name=parse_str(data.get("name"), "name", required=True, max_length=255),
        description=parse_str(data.get("description"), "description"),
        event_type=parse_choice(data.get("eventType"), "eventType", EventType),
        status=parse_choice(data.get("status"), "status", EventStatus, required=False) or EventStatus.UPCOMING.value,
        location=parse_str(data.get("location"), "location", max_length=255),
        start_date=parse_datetime(data.get("startDate"), "startDate", required=True),
        end_date=parse_datetime(data.get("endDate"), "endDate", required=True),
        registration_deadline=parse_datetime(data.get("registrationDeadline"), "registrationDeadline"),
        max_team_size=parse_int(data.get("maxTeamSize"), "maxTeamSize", required=False, minimum=1) or 4,
        min_team_size=parse_int(data.get("minTeamSize"), "minTeamSize", required=False, minimum=1) or 1,
        max_teams=parse_int(data.get("maxTeams"), "maxTeams", required=False, minimum=1),
        sponsor_id=_parse_sponsor_id(data.get("sponsorId"), "sponsorId"),
        judging_phase=JudgingPhase.NOT_STARTED.value,
        created_by=created_by,
    )
    validate_event(event)

    db.session.add(event)
    db.session.flush()

    log_activity(
        "Event Created",
        event_id=event.id,
        user_id=created_by,
        description=f"{event.name} was created",
        activity_type="event_created",
        icon_name="Calendar",
    )
    return event


def delete_event(event: Event) -> None:
    """
    Remove an event and everything under it.
    Dependent rows go through the database's ON DELETE CASCADE.
    """
    event_id = event.id
    db.session.execute(
        update(Event).where(Event.id == event_id).values(current_active_team_id=None)
    )
    db.session.execute(delete(Event).where(Event.id == event_id))


# --- judging phase ---

def set_judging_phase(event: Event, phase: str, user_id: Optional[int] = None) -> Event:
    """
    Move the event to `phase`.

    Any value may follow any other. Moving backwards (e.g. ended -> in-progress)
    is allowed but flagged in the activity feed.
    """
    phase = parse_choice(phase, "judgingPhase", JudgingPhase)
    previous = event.judging_phase

    if previous == phase:
        return event

    event.judging_phase = phase
    backwards = PHASE_ORDER[phase] < PHASE_ORDER.get(previous, 0)

    log_activity(
        "Judging Phase Changed",
        event_id=event.id,
        user_id=user_id,
        description=f"Judging phase set to: {phase} (was {previous})",
        activity_type="phase_changed",
        icon_name="Settings",
        tone="warning" if backwards else "primary",
    )
    logger.info("Event %s judging phase %s -> %s", event.id, previous, phase)
    return event


def scoring_is_open(event: Event) -> bool:
    return event.judging_phase != JudgingPhase.ENDED.value


def ensure_scoring_open(event: Event) -> None:
    if not scoring_is_open(event):
        raise ScoringClosed("Judging has ended for this event - scoring locked")


# --- active team ---

def set_active_team(event: Event, team_id: Optional[int], user_id: Optional[int] = None) -> Optional[Team]:
    """
    Make `team_id` the event's only active team, or clear it when None.

    Every other team in the event goes back to waiting in the same UPDATE,
    so at no commit point are two teams active.
    """
    team = None
    if team_id is not None:
        team = get_team_in_event_or_404(event, team_id)

    if team is not None:
        db.session.execute(
            update(Team)
            .where(Team.event_id == event.id)
            .values(
                status=case(
                    (Team.id == team.id, TeamStatus.ACTIVE.value),
                    else_=TeamStatus.WAITING.value,
                )
            )
            .execution_options(synchronize_session=False)
        )
    else:
        db.session.execute(
            update(Team)
            .where(Team.event_id == event.id, Team.status == TeamStatus.ACTIVE.value)
            .values(status=TeamStatus.WAITING.value)
            .execution_options(synchronize_session=False)
        )

    event.current_active_team_id = team.id if team else None

    log_activity(
        "Team Activated" if team else "Active Team Cleared",
        event_id=event.id,
        user_id=user_id,
        description=team.name if team else None,
        activity_type="team_activated" if team else "team_cleared",
        icon_name="Users",
    )
    logger.info("Event %s active team -> %s", event.id, team.id if team else None)

    db.session.flush()
    db.session.expire_all()
    return team


def set_team_status(team: Team, status: str, user_id: Optional[int] = None) -> Team:
    status = parse_choice(status, "status", TeamStatus)
    event = team.event

    if status == TeamStatus.ACTIVE.value:
        set_active_team(event, team.id, user_id=user_id)
        return db.session.get(Team, team.id)

    team.status = status
    if event.current_active_team_id == team.id:
        event.current_active_team_id = None

    log_activity(
        "Team Status Changed",
        event_id=event.id,
        user_id=user_id,
        description=f"{team.name}: {status}",
        activity_type="team_status",
        icon_name="Users",
    )
    return team


# --- stats ---

def event_counts(event_ids: list[int]) -> dict[int, dict]:
    """Team / judge counts for a batch of events (list views)."""
    if not event_ids:
        return {}

    teams = dict(
        db.session.query(Team.event_id, func.count(Team.id))
        .filter(Team.event_id.in_(event_ids))
        .group_by(Team.event_id)
        .all()
    )
    judges = dict(
        db.session.query(EventJudge.event_id, func.count(EventJudge.id))
        .filter(EventJudge.event_id.in_(event_ids))
        .group_by(EventJudge.event_id)
        .all()
    )
    return {
        eid: {"teams_count": teams.get(eid, 0), "judges_count": judges.get(eid, 0)}
        for eid in event_ids
    }


def event_stats(event: Event) -> dict:
    counts = event_counts([event.id])[event.id]

    completed = (
        ScoreSubmission.query
        .filter(ScoreSubmission.event_id == event.id, ScoreSubmission.submitted_at.isnot(None))
        .count()
    )
    in_progress = (
        ScoreSubmission.query
        .filter(ScoreSubmission.event_id == event.id, ScoreSubmission.submitted_at.is_(None))
        .count()
    )

    counts["submissions_completed"] = completed
    counts["submissions_in_progress"] = in_progress
    return counts
