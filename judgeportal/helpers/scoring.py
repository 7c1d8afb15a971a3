"""
Score submission workflow.

A judge's evaluation of a team is one ScoreSubmission row (unique per judge+team)
plus one Score row per rubric criterion and at most one JudgeComment. Submitting
replaces the whole score set; it never patches individual criteria.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError

from judgeportal.errors import ValidationError
from judgeportal.extensions import db
from judgeportal.helpers.activity import log_activity
from judgeportal.helpers.date import utcnow
from judgeportal.helpers.event import ensure_scoring_open, get_event_or_404, get_team_in_event_or_404
from judgeportal.helpers.judge import resolve_acting_judge
from judgeportal.helpers.payload import parse_id, parse_int, parse_str
from judgeportal.models import (
    EventJudge,
    JudgeComment,
    RubricCriterion,
    Score,
    ScoreSubmission,
    Team,
    User,
)
from judgeportal.models.enums import SubmissionStatus

logger = logging.getLogger(__name__)


@dataclass
class ScoreEntry:
    criterion_id: int
    score: int
    reflection: Optional[str] = None


def parse_score_entries(raw_scores) -> list[ScoreEntry]:
    """
    Validate a submitted score list against the rubric before touching the DB.

    Each item: {"criterionId": int, "score": int, "reflection"?: str}.
    ("criteriaId" is accepted as an alias for older clients.)
    """
    if not isinstance(raw_scores, list) or not raw_scores:
        raise ValidationError("scores must be a non-empty list")

    criteria = {c.id: c for c in RubricCriterion.query.all()}

    entries = []
    seen = set()
    for i, item in enumerate(raw_scores):
        if not isinstance(item, dict):
            raise ValidationError(f"scores[{i}] must be an object")

        raw_criterion = item.get("criterionId", item.get("criteriaId"))
        criterion_id = parse_id(raw_criterion, f"scores[{i}].criterionId")
        criterion = criteria.get(criterion_id)
        if criterion is None:
            raise ValidationError(f"scores[{i}]: unknown rubric criterion {criterion_id}")
        if criterion_id in seen:
            raise ValidationError(f"scores[{i}]: criterion {criterion_id} scored more than once")
        seen.add(criterion_id)

        value = parse_int(item.get("score"), f"scores[{i}].score")
        if value < 0 or value > criterion.max_score:
            raise ValidationError(
                f"Score for '{criterion.name}' must be between 0 and {criterion.max_score}",
                details={"criterionId": criterion_id, "score": value, "max_score": criterion.max_score},
            )

        reflection = parse_str(item.get("reflection"), f"scores[{i}].reflection")
        entries.append(ScoreEntry(criterion_id=criterion_id, score=value, reflection=reflection))

    return entries


def _resolve_context(user: User, data: dict):
    event_id = parse_id(data.get("eventId"), "eventId")
    team_id = parse_id(data.get("teamId"), "teamId")
    judge_id = parse_id(data.get("judgeId"), "judgeId")

    event = get_event_or_404(event_id)
    team = get_team_in_event_or_404(event, team_id)
    judge = resolve_acting_judge(user, event, judge_id)
    return event, team, judge


def _find_submission(judge_id: int, team_id: int) -> Optional[ScoreSubmission]:
    return ScoreSubmission.query.filter_by(judge_id=judge_id, team_id=team_id).first()


def submit_scores(user: User, data: dict) -> ScoreSubmission:
    """
    Record a judge's full score set for a team.

    Upserts the submission, replaces every score row, upserts the overall
    comment (when given) and logs the action. The caller commits; a failure at
    any step must be rolled back so the previous submission stays intact.
    """
    event, team, judge = _resolve_context(user, data)

    entries = parse_score_entries(data.get("scores"))
    comment = parse_str(data.get("overallComment", data.get("overallComments")), "overallComment")
    time_spent = parse_int(data.get("timeSpentSeconds"), "timeSpentSeconds", required=False, minimum=0)
    ensure_scoring_open(event)

    now = utcnow()

    try:
        submission = _find_submission(judge.id, team.id)
        if submission is None:
            submission = ScoreSubmission(
                judge_id=judge.id,
                event_id=event.id,
                team_id=team.id,
                started_at=now,
            )
            db.session.add(submission)

        submission.submitted_at = now
        submission.time_spent_seconds = time_spent or 0
        db.session.flush()

        # Executed immediately so the unique (judge, team, criterion) rows are
        # gone before the replacements are inserted.
        db.session.execute(
            delete(Score)
            .where(Score.submission_id == submission.id)
            .execution_options(synchronize_session=False)
        )

        for entry in entries:
            db.session.add(
                Score(
                    submission_id=submission.id,
                    judge_id=judge.id,
                    team_id=team.id,
                    rubric_criteria_id=entry.criterion_id,
                    score=entry.score,
                    reflection=entry.reflection,
                )
            )

        if comment is not None:
            row = JudgeComment.query.filter_by(judge_id=judge.id, team_id=team.id).first()
            if row is None:
                row = JudgeComment(submission_id=submission.id, judge_id=judge.id, team_id=team.id)
                db.session.add(row)
            row.submission_id = submission.id
            row.comments = comment

        log_activity(
            "Scores Submitted",
            event_id=event.id,
            user_id=user.id,
            description=f"{judge.name} submitted scores for {team.name}",
            activity_type="score_submitted",
            icon_name="CheckCircle",
            tone="success",
        )

        db.session.flush()
    except IntegrityError as e:
        db.session.rollback()
        logger.warning("Score submission rejected by constraints: %s", e.orig)
        raise ValidationError("Scores could not be saved; check the values and try again")

    db.session.expire(submission)
    logger.info(
        "Judge %s submitted %d scores for team %s (event %s)",
        judge.id, len(entries), team.id, event.id,
    )
    return submission


def start_scoring(user: User, data: dict) -> ScoreSubmission:
    """
    Mark a judge as having started on a team.

    Creates an in-progress submission if none exists; an existing one
    (in progress or submitted) is returned untouched.
    """
    event, team, judge = _resolve_context(user, data)
    ensure_scoring_open(event)

    submission = _find_submission(judge.id, team.id)
    if submission is None:
        submission = ScoreSubmission(
            judge_id=judge.id,
            event_id=event.id,
            team_id=team.id,
            started_at=utcnow(),
        )
        db.session.add(submission)
        db.session.flush()
    return submission


def submission_status(submission: Optional[ScoreSubmission]) -> str:
    if submission is None:
        return SubmissionStatus.NOT_STARTED.value
    if submission.is_submitted:
        return SubmissionStatus.COMPLETED.value
    return SubmissionStatus.IN_PROGRESS.value


def judge_team_scores(judge: EventJudge, team: Team) -> dict:
    """A judge's saved state for one team, used to pre-fill the scoring form."""
    submission = _find_submission(judge.id, team.id)
    comment = JudgeComment.query.filter_by(judge_id=judge.id, team_id=team.id).first()

    scores = []
    if submission is not None:
        scores = (
            Score.query
            .join(RubricCriterion, RubricCriterion.id == Score.rubric_criteria_id)
            .filter(Score.submission_id == submission.id)
            .order_by(RubricCriterion.display_order.asc())
            .all()
        )

    return {
        "judge_id": judge.id,
        "team_id": team.id,
        "status": submission_status(submission),
        "started_at": submission.started_at if submission else None,
        "submitted_at": submission.submitted_at if submission else None,
        "time_spent_seconds": submission.time_spent_seconds if submission else None,
        "total_score": sum(s.score for s in scores) if submission and submission.is_submitted else None,
        "scores": [
            {"criterion_id": s.rubric_criteria_id, "score": s.score, "reflection": s.reflection}
            for s in scores
        ],
        "overall_comment": comment.comments if comment else None,
    }


def judge_progress(event_id: int, judge: EventJudge) -> list[dict]:
    """Per-team completion for one judge, in presentation order."""
    teams = (
        Team.query
        .filter(Team.event_id == event_id)
        .order_by(Team.presentation_order.asc().nullslast(), Team.name.asc())
        .all()
    )
    submissions = {
        s.team_id: s
        for s in ScoreSubmission.query.filter_by(judge_id=judge.id, event_id=event_id).all()
    }

    totals = {}
    submitted_ids = [s.id for s in submissions.values() if s.is_submitted]
    if submitted_ids:
        for s in Score.query.filter(Score.submission_id.in_(submitted_ids)).all():
            totals[s.submission_id] = totals.get(s.submission_id, 0) + s.score

    rows = []
    for t in teams:
        sub = submissions.get(t.id)
        rows.append(
            {
                "team_id": t.id,
                "name": t.name,
                "project_title": t.project_title,
                "presentation_order": t.presentation_order,
                "team_status": t.status,
                "status": submission_status(sub),
                "started_at": sub.started_at if sub else None,
                "submitted_at": sub.submitted_at if sub else None,
                "total_score": totals.get(sub.id, 0) if sub and sub.is_submitted else None,
            }
        )
    return rows
