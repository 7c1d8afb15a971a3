from sqlalchemy import UniqueConstraint
from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow

class JudgeComment(db.Model):
    __tablename__ = "judge_comments"

    id = db.Column(db.Integer, primary_key=True)

    submission_id = db.Column(
        db.Integer,
        db.ForeignKey("score_submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    judge_id = db.Column(
        db.Integer,
        db.ForeignKey("event_judges.id", ondelete="CASCADE"),
        nullable=False,
    )
    team_id = db.Column(
        db.Integer,
        db.ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
    )

    comments = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    judge = db.relationship("EventJudge")

    __table_args__ = (
        UniqueConstraint("judge_id", "team_id", name="uq_judge_comments_judge_team"),
    )
