"""
Judge presence.

"Online" is never stored. It is derived from the judge's sessions:
an open session (logged_out_at IS NULL) whose last_activity falls inside
JUDGE_ONLINE_WINDOW_SECONDS of now.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from judgeportal.config import JUDGE_ONLINE_WINDOW_SECONDS
from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow
from judgeportal.models import EventJudge, JudgeSession, ScoreSubmission

logger = logging.getLogger(__name__)


def online_cutoff(now: Optional[datetime] = None, window_seconds: int = JUDGE_ONLINE_WINDOW_SECONDS) -> datetime:
    return (now or utcnow()) - timedelta(seconds=window_seconds)


def session_is_online(session: JudgeSession, now: Optional[datetime] = None) -> bool:
    if session is None or session.logged_out_at is not None:
        return False
    return session.last_activity > online_cutoff(now)


def latest_open_session(event_id: int, judge_id: int) -> Optional[JudgeSession]:
    return (
        JudgeSession.query
        .filter(
            JudgeSession.event_id == event_id,
            JudgeSession.judge_id == judge_id,
            JudgeSession.logged_out_at.is_(None),
        )
        .order_by(JudgeSession.logged_in_at.desc(), JudgeSession.id.desc())
        .first()
    )


def start_session(event_id: int, judge_id: int, now: Optional[datetime] = None) -> JudgeSession:
    """Close whatever is still open for this judge and begin a fresh session."""
    now = now or utcnow()
    close_sessions(event_id, judge_id, now=now)

    session = JudgeSession(event_id=event_id, judge_id=judge_id, logged_in_at=now, last_activity=now)
    db.session.add(session)
    return session


def record_heartbeat(event_id: int, judge_id: int, now: Optional[datetime] = None) -> JudgeSession:
    """
    Bump last_activity on the judge's most recent open session.
    No open session means one is opened, so a heartbeat never fails for that reason.
    """
    now = now or utcnow()
    session = latest_open_session(event_id, judge_id)

    if session is None:
        session = JudgeSession(event_id=event_id, judge_id=judge_id, logged_in_at=now, last_activity=now)
        db.session.add(session)
    else:
        session.last_activity = now

    return session


def close_sessions(event_id: int, judge_id: int, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    open_sessions = (
        JudgeSession.query
        .filter(
            JudgeSession.event_id == event_id,
            JudgeSession.judge_id == judge_id,
            JudgeSession.logged_out_at.is_(None),
        )
        .all()
    )
    for s in open_sessions:
        s.logged_out_at = now
    return len(open_sessions)


def online_judge_ids(event_id: int, now: Optional[datetime] = None) -> dict[int, datetime]:
    """judge_id -> most recent qualifying last_activity, for judges currently online."""
    rows = (
        db.session.query(JudgeSession.judge_id, func.max(JudgeSession.last_activity))
        .filter(
            JudgeSession.event_id == event_id,
            JudgeSession.logged_out_at.is_(None),
            JudgeSession.last_activity > online_cutoff(now),
        )
        .group_by(JudgeSession.judge_id)
        .all()
    )
    return {judge_id: last for judge_id, last in rows}


def safe_online_judge_ids(event_id: int, now: Optional[datetime] = None) -> dict[int, datetime]:
    """
    Same as online_judge_ids, but a failing presence query reads as "everyone offline"
    instead of failing the caller.
    """
    try:
        return online_judge_ids(event_id, now=now)
    except SQLAlchemyError:
        logger.warning("Presence lookup failed for event %s; treating judges as offline", event_id, exc_info=True)
        db.session.rollback()
        return {}


def judge_presence(event_id: int, now: Optional[datetime] = None) -> list[dict]:
    """
    Presence snapshot for every judge profile on the event.

    Ordered: online first, then most recent activity, then name.
    """
    judges = EventJudge.query.filter_by(event_id=event_id).all()
    online = safe_online_judge_ids(event_id, now=now)

    scored = dict(
        db.session.query(ScoreSubmission.judge_id, func.count(ScoreSubmission.id))
        .filter(ScoreSubmission.event_id == event_id, ScoreSubmission.submitted_at.isnot(None))
        .group_by(ScoreSubmission.judge_id)
        .all()
    )

    rows = []
    for j in judges:
        last = online.get(j.id)
        rows.append(
            {
                "judge_id": j.id,
                "name": j.name,
                "user_id": j.user_id,
                "online": last is not None,
                "last_activity": last,
                "teams_scored": scored.get(j.id, 0),
            }
        )

    rows.sort(
        key=lambda r: (
            not r["online"],
            -(r["last_activity"].timestamp()) if r["last_activity"] else 0,
            r["name"],
        )
    )
    return rows
