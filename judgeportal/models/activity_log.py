from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow

class ActivityLog(db.Model):
    """Append-only feed of notable actions, shown on the admin dashboard."""
    __tablename__ = "activity_log"

    id = db.Column(db.Integer, primary_key=True)

    event_id = db.Column(
        db.Integer,
        db.ForeignKey("events.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    activity_type = db.Column(db.String(50), nullable=True)
    icon_name = db.Column(db.String(50), nullable=True)
    tone = db.Column(db.String(20), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    event = db.relationship("Event")
    user = db.relationship("User")
