import logging

from sqlalchemy import insert

from judgeportal.config import MAX_CRITERION_SCORE
from judgeportal.extensions import db
from judgeportal.models import RubricCriterion

logger = logging.getLogger(__name__)

DEFAULT_CRITERIA = [
    {
        "name": "Effective Communication",
        "short_name": "Communication",
        "description": "Was the problem urgent, the solution convincing, and the impact tangible?",
        "display_order": 1,
        "icon_name": "Megaphone",
        "guiding_question": "Notes on clarity and messaging...",
    },
    {
        "name": "Would Fund/Buy Solution",
        "short_name": "Funding",
        "description": "Consider technical feasibility, commercial viability, and novelty of the approach.",
        "display_order": 2,
        "icon_name": "BadgeDollarSign",
        "guiding_question": "Thoughts on feasibility and potential...",
    },
    {
        "name": "Presentation Quality",
        "short_name": "Presentation",
        "description": "Evaluate the demo assets, storytelling, and overall delivery.",
        "display_order": 3,
        "icon_name": "Presentation",
        "guiding_question": "Observations on delivery and engagement...",
    },
    {
        "name": "Team Cohesion",
        "short_name": "Cohesion",
        "description": "Reflect on the pitch strength, Q&A performance, and your gut confidence.",
        "display_order": 4,
        "icon_name": "Sparkles",
        "guiding_question": "General impressions and final thoughts...",
    },
]


def list_criteria() -> list[RubricCriterion]:
    return RubricCriterion.query.order_by(RubricCriterion.display_order.asc()).all()


def seed_rubric() -> int:
    """
    Insert the default criteria that are missing (matched on display_order).
    Safe to run repeatedly. Returns how many rows were added.
    """
    existing = {c.display_order for c in RubricCriterion.query.all()}

    added = 0
    for row in DEFAULT_CRITERIA:
        if row["display_order"] in existing:
            continue
        db.session.add(RubricCriterion(max_score=MAX_CRITERION_SCORE, **row))
        added += 1

    if added:
        logger.info("Seeded %d rubric criteria", added)
    return added


def insert_default_rubric(conn) -> int:
    """Insert the full default rubric on an open connection. The table must be empty."""
    rows = [dict(max_score=MAX_CRITERION_SCORE, **row) for row in DEFAULT_CRITERIA]
    conn.execute(insert(RubricCriterion.__table__), rows)
    logger.info("Seeded %d rubric criteria", len(rows))
    return len(rows)
