from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow

class JudgeSession(db.Model):
    __tablename__ = "judge_sessions"

    id = db.Column(db.Integer, primary_key=True)

    event_id = db.Column(
        db.Integer,
        db.ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    judge_id = db.Column(
        db.Integer,
        db.ForeignKey("event_judges.id", ondelete="CASCADE"),
        nullable=False,
    )

    logged_in_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_activity = db.Column(db.DateTime, nullable=False, default=utcnow)

    # NULL while the session is open
    logged_out_at = db.Column(db.DateTime, nullable=True)

    judge = db.relationship("EventJudge")

    __table_args__ = (
        db.Index("ix_judge_sessions_event_judge", "event_id", "judge_id"),
        db.Index("ix_judge_sessions_activity", "event_id", "judge_id", "last_activity"),
    )
