from sqlalchemy import CheckConstraint, UniqueConstraint
from judgeportal.config import MAX_CRITERION_SCORE
from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow

class Score(db.Model):
    __tablename__ = "scores"

    id = db.Column(db.Integer, primary_key=True)

    submission_id = db.Column(
        db.Integer,
        db.ForeignKey("score_submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Denormalised from the submission so (judge, team, criterion) can be unique
    judge_id = db.Column(
        db.Integer,
        db.ForeignKey("event_judges.id", ondelete="CASCADE"),
        nullable=False,
    )
    team_id = db.Column(
        db.Integer,
        db.ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rubric_criteria_id = db.Column(
        db.Integer,
        db.ForeignKey("rubric_criteria.id", ondelete="CASCADE"),
        nullable=False,
    )

    score = db.Column(db.Integer, nullable=False)
    reflection = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    submission = db.relationship("ScoreSubmission", back_populates="scores")
    criterion = db.relationship("RubricCriterion")

    __table_args__ = (
        UniqueConstraint(
            "judge_id",
            "team_id",
            "rubric_criteria_id",
            name="uq_scores_judge_team_criterion",
        ),
        CheckConstraint(
            f"score >= 0 AND score <= {MAX_CRITERION_SCORE}",
            name="ck_scores_range",
        ),
        db.Index("ix_scores_judge_team", "judge_id", "team_id"),
    )
