from sqlalchemy import UniqueConstraint
from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow

class EventJudge(db.Model):
    """
    A named judge "seat" for one event.

    Several seats may share one login (a panel at one table), so everything
    score- and presence-related is keyed by this row, not by the user.
    """
    __tablename__ = "event_judges"

    id = db.Column(db.Integer, primary_key=True)

    event_id = db.Column(
        db.Integer,
        db.ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(255), nullable=False)
    assigned_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    event = db.relationship("Event", back_populates="judges")
    user = db.relationship("User", back_populates="judge_profiles")

    __table_args__ = (
        UniqueConstraint("event_id", "name", name="uq_event_judges_event_name"),
    )
