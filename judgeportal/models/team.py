from sqlalchemy import CheckConstraint, UniqueConstraint
from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow
from judgeportal.models.enums import TeamStatus, check_in

class Team(db.Model):
    __tablename__ = "teams"

    id = db.Column(db.Integer, primary_key=True)

    event_id = db.Column(
        db.Integer,
        db.ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(255), nullable=False)
    project_title = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    project_url = db.Column(db.Text, nullable=True)

    # Order teams present in; optional but unique within the event
    presentation_order = db.Column(db.Integer, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=TeamStatus.WAITING.value, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    event = db.relationship("Event", back_populates="teams", foreign_keys=[event_id])
    members = db.relationship(
        "TeamMember",
        back_populates="team",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TeamMember.id",
        lazy=True,
    )

    __table_args__ = (
        UniqueConstraint("event_id", "name", name="uq_teams_event_name"),
        UniqueConstraint("event_id", "presentation_order", name="uq_teams_event_order"),
        CheckConstraint(check_in("status", TeamStatus), name="ck_teams_status"),
    )
