from typing import Optional

from sqlalchemy import func

from judgeportal.errors import ConflictError, NotFound, PermissionDenied, ValidationError
from judgeportal.extensions import db
from judgeportal.helpers.activity import log_activity
from judgeportal.helpers.auth import has_role
from judgeportal.helpers.payload import parse_id, parse_str
from judgeportal.models import Event, EventJudge, ScoreSubmission, User
from judgeportal.models.enums import UserRole


def get_judge_or_404(judge_id: int) -> EventJudge:
    judge = db.session.get(EventJudge, judge_id)
    if not judge:
        raise NotFound("Judge profile not found")
    return judge


def resolve_acting_judge(user: User, event: Event, judge_id: Optional[int]) -> EventJudge:
    """
    The judge profile a request acts as.

    Judges may only act as profiles they own. Admins and moderators may act as
    any profile on the event (e.g. entering paper score sheets).
    """
    if judge_id is None:
        raise ValidationError("judgeId is required")

    judge = db.session.get(EventJudge, judge_id)
    if not judge or judge.event_id != event.id:
        raise NotFound("Judge profile not found in this event")

    if judge.user_id != user.id and not has_role(user, UserRole.ADMIN, UserRole.MODERATOR):
        raise PermissionDenied("Not your judge profile")

    return judge


def create_judge_profile(event: Event, data: dict, assigned_by: Optional[int] = None) -> EventJudge:
    name = parse_str(data.get("name"), "name", required=True, max_length=255)
    user_id = parse_id(data.get("userId"), "userId")

    user = db.session.get(User, user_id)
    if not user:
        raise ValidationError("Unknown user")

    exists = EventJudge.query.filter_by(event_id=event.id, name=name).first()
    if exists:
        raise ConflictError("A judge profile with this name already exists for this event")

    judge = EventJudge(event_id=event.id, user_id=user.id, name=name)
    db.session.add(judge)
    db.session.flush()

    log_activity(
        "Judge Assigned",
        event_id=event.id,
        user_id=assigned_by,
        description=f"{name} ({user.email})",
        activity_type="judge_assigned",
        icon_name="UserPlus",
    )
    return judge


def judge_profiles(event_id: int, user_id: Optional[int] = None) -> list[dict]:
    q = EventJudge.query.filter(EventJudge.event_id == event_id)
    if user_id is not None:
        q = q.filter(EventJudge.user_id == user_id)
    judges = q.order_by(EventJudge.name.asc()).all()

    scored = dict(
        db.session.query(ScoreSubmission.judge_id, func.count(ScoreSubmission.id))
        .filter(ScoreSubmission.event_id == event_id, ScoreSubmission.submitted_at.isnot(None))
        .group_by(ScoreSubmission.judge_id)
        .all()
    )

    return [
        {
            "id": j.id,
            "event_id": j.event_id,
            "user_id": j.user_id,
            "user_email": j.user.email if j.user else None,
            "name": j.name,
            "assigned_at": j.assigned_at,
            "teams_scored": scored.get(j.id, 0),
        }
        for j in judges
    ]
