from sqlalchemy import CheckConstraint
from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow
from judgeportal.models.enums import EventStatus, EventType, JudgingPhase, check_in

class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    event_type = db.Column(db.String(50), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=EventStatus.UPCOMING.value, index=True)
    location = db.Column(db.String(255), nullable=True)

    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    registration_deadline = db.Column(db.DateTime, nullable=True)

    max_team_size = db.Column(db.Integer, nullable=False, default=4)
    min_team_size = db.Column(db.Integer, nullable=False, default=1)
    max_teams = db.Column(db.Integer, nullable=True)

    sponsor_id = db.Column(
        db.Integer,
        db.ForeignKey("sponsors.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    sponsor = db.relationship("Sponsor", back_populates="events")

    # Moderator-controlled live state
    judging_phase = db.Column(
        db.String(20),
        nullable=False,
        default=JudgingPhase.NOT_STARTED.value,
        index=True,
    )

    # events <-> teams is a cycle, so this FK is added after both tables exist
    current_active_team_id = db.Column(
        db.Integer,
        db.ForeignKey(
            "teams.id",
            ondelete="SET NULL",
            use_alter=True,
            name="fk_events_current_active_team",
        ),
        nullable=True,
    )
    current_active_team = db.relationship(
        "Team",
        foreign_keys=[current_active_team_id],
        post_update=True,
    )

    created_by = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    teams = db.relationship(
        "Team",
        back_populates="event",
        foreign_keys="Team.event_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )
    judges = db.relationship(
        "EventJudge",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    __table_args__ = (
        CheckConstraint(check_in("event_type", EventType), name="ck_events_type"),
        CheckConstraint(check_in("status", EventStatus), name="ck_events_status"),
        CheckConstraint(check_in("judging_phase", JudgingPhase), name="ck_events_judging_phase"),
        CheckConstraint("min_team_size >= 1 AND max_team_size >= min_team_size", name="ck_events_team_size"),
    )
