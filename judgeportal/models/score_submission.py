from sqlalchemy import UniqueConstraint
from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow

class ScoreSubmission(db.Model):
    """
    One judge's evaluation of one team.

    `submitted_at` stays NULL while the judge is still working on it;
    only submitted rows count towards aggregates.
    """
    __tablename__ = "score_submissions"

    id = db.Column(db.Integer, primary_key=True)

    judge_id = db.Column(
        db.Integer,
        db.ForeignKey("event_judges.id", ondelete="CASCADE"),
        nullable=False,
    )
    event_id = db.Column(
        db.Integer,
        db.ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    team_id = db.Column(
        db.Integer,
        db.ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    started_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    submitted_at = db.Column(db.DateTime, nullable=True)
    time_spent_seconds = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    judge = db.relationship("EventJudge")
    team = db.relationship("Team")
    scores = db.relationship(
        "Score",
        back_populates="submission",
        passive_deletes=True,
        lazy=True,
    )

    __table_args__ = (
        UniqueConstraint("judge_id", "team_id", name="uq_score_submissions_judge_team"),
    )

    @property
    def is_submitted(self) -> bool:
        return self.submitted_at is not None
