from flask import Blueprint, jsonify

from judgeportal.extensions import db
from judgeportal.helpers.auth import current_user, login_required
from judgeportal.helpers.db import atomic
from judgeportal.helpers.event import get_event_or_404, get_team_in_event_or_404
from judgeportal.helpers.judge import get_judge_or_404, resolve_acting_judge
from judgeportal.helpers.payload import get_json_body
from judgeportal.helpers.rubric import list_criteria
from judgeportal.helpers.scoring import judge_team_scores, start_scoring, submission_status, submit_scores
from judgeportal.helpers.serialize import criterion_to_dict
from judgeportal.models import Team

scores_bp = Blueprint("scores", __name__)


def _submission_body(submission):
    return {
        "id": submission.id,
        "judge_id": submission.judge_id,
        "event_id": submission.event_id,
        "team_id": submission.team_id,
        "status": submission_status(submission),
        "started_at": submission.started_at,
        "submitted_at": submission.submitted_at,
        "time_spent_seconds": submission.time_spent_seconds,
    }


@scores_bp.route("/scores", methods=["POST"])
@login_required
def submit_scores_route():
    """
    Submit (or resubmit) a judge's full score set for a team.

      {
        "eventId": 1, "teamId": 2, "judgeId": 3,
        "scores": [{"criterionId": 1, "score": 20, "reflection": "..."}, ...],
        "overallComment": "...",
        "timeSpentSeconds": 300
      }

    Resubmitting replaces the previous set entirely.
    """
    data = get_json_body()
    with atomic():
        submission = submit_scores(current_user(), data)
        body = _submission_body(submission)

    body["scores"] = judge_team_scores(
        get_judge_or_404(body["judge_id"]), db.session.get(Team, body["team_id"])
    )["scores"]
    return jsonify({"submission": body})


@scores_bp.route("/scores/start", methods=["POST"])
@login_required
def start_scores_route():
    data = get_json_body()
    with atomic():
        submission = start_scoring(current_user(), data)
        body = _submission_body(submission)
    return jsonify({"submission": body})


@scores_bp.route("/scores/<int:judge_id>/<int:team_id>")
@login_required
def get_scores(judge_id, team_id):
    """Saved scores for one judge profile and team (pre-fills the scoring form)."""
    judge = get_judge_or_404(judge_id)
    event = get_event_or_404(judge.event_id)
    resolve_acting_judge(current_user(), event, judge.id)

    team = get_team_in_event_or_404(event, team_id)

    return jsonify(judge_team_scores(judge, team))


@scores_bp.route("/rubric")
@login_required
def rubric():
    return jsonify({"criteria": [criterion_to_dict(c) for c in list_criteria()]})
