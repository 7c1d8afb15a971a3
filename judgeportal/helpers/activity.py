from typing import Optional

from judgeportal.config import ACTIVITY_FEED_LIMIT, ACTIVITY_FEED_MAX
from judgeportal.extensions import db
from judgeportal.models import ActivityLog


def log_activity(
    title: str,
    event_id: Optional[int] = None,
    user_id: Optional[int] = None,
    description: Optional[str] = None,
    activity_type: Optional[str] = None,
    icon_name: Optional[str] = None,
    tone: str = "primary",
) -> ActivityLog:
    """
    Append an activity entry to the current session.
    Caller owns the transaction, so the entry commits or rolls back with the action it describes.
    """
    entry = ActivityLog(
        event_id=event_id,
        user_id=user_id,
        title=title,
        description=description,
        activity_type=activity_type,
        icon_name=icon_name,
        tone=tone,
    )
    db.session.add(entry)
    return entry


def recent_activity(event_id: Optional[int] = None, limit: Optional[int] = None) -> list[ActivityLog]:
    if not limit or limit < 1:
        limit = ACTIVITY_FEED_LIMIT
    limit = min(limit, ACTIVITY_FEED_MAX)

    q = ActivityLog.query
    if event_id:
        q = q.filter(ActivityLog.event_id == event_id)

    return (
        q.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )
