from sqlalchemy import CheckConstraint
from judgeportal.config import MAX_CRITERION_SCORE
from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow

class RubricCriterion(db.Model):
    __tablename__ = "rubric_criteria"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    short_name = db.Column(db.String(50), nullable=True)
    description = db.Column(db.Text, nullable=True)

    max_score = db.Column(db.Integer, nullable=False, default=MAX_CRITERION_SCORE)
    display_order = db.Column(db.Integer, nullable=False, unique=True)

    icon_name = db.Column(db.String(50), nullable=True)
    guiding_question = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            f"max_score > 0 AND max_score <= {MAX_CRITERION_SCORE}",
            name="ck_rubric_criteria_max_score",
        ),
    )
