"""
Read-side score aggregation.

Only submitted submissions count. A judge who has started but not submitted
adds nothing to a team's total and is not part of the average's denominator.
"""
from typing import Optional

from sqlalchemy import func

from judgeportal.extensions import db
from judgeportal.helpers.event import event_counts
from judgeportal.helpers.presence import judge_presence
from judgeportal.helpers.scoring import submission_status
from judgeportal.models import (
    Event,
    EventJudge,
    JudgeComment,
    RubricCriterion,
    Score,
    ScoreSubmission,
    Team,
)


def _round(value) -> Optional[float]:
    if value is None:
        return None
    return round(float(value), 2)


def _ordered_teams(event_id: int) -> list[Team]:
    return (
        Team.query
        .filter(Team.event_id == event_id)
        .order_by(Team.presentation_order.asc().nullslast(), Team.name.asc())
        .all()
    )


def _ordered_criteria() -> list[RubricCriterion]:
    return RubricCriterion.query.order_by(RubricCriterion.display_order.asc()).all()


def submitted_totals(event_id: int, team_id: Optional[int] = None) -> dict[tuple[int, int], int]:
    """(team_id, judge_id) -> that judge's total for the team, submitted rows only."""
    q = (
        db.session.query(
            ScoreSubmission.team_id,
            ScoreSubmission.judge_id,
            func.coalesce(func.sum(Score.score), 0),
        )
        .outerjoin(Score, Score.submission_id == ScoreSubmission.id)
        .filter(
            ScoreSubmission.event_id == event_id,
            ScoreSubmission.submitted_at.isnot(None),
        )
    )
    if team_id is not None:
        q = q.filter(ScoreSubmission.team_id == team_id)

    rows = q.group_by(ScoreSubmission.id, ScoreSubmission.team_id, ScoreSubmission.judge_id).all()
    return {(t_id, j_id): int(total) for t_id, j_id, total in rows}


def criteria_averages(event_id: int, team_id: Optional[int] = None) -> dict[int, dict[int, float]]:
    """team_id -> {criterion_id: average score over submitted judges}."""
    q = (
        db.session.query(
            ScoreSubmission.team_id,
            Score.rubric_criteria_id,
            func.avg(Score.score),
        )
        .join(Score, Score.submission_id == ScoreSubmission.id)
        .filter(
            ScoreSubmission.event_id == event_id,
            ScoreSubmission.submitted_at.isnot(None),
        )
    )
    if team_id is not None:
        q = q.filter(ScoreSubmission.team_id == team_id)

    out = {}
    for t_id, criterion_id, avg in q.group_by(ScoreSubmission.team_id, Score.rubric_criteria_id).all():
        out.setdefault(t_id, {})[criterion_id] = _round(avg)
    return out


def _breakdown_list(criteria: list[RubricCriterion], averages: dict[int, float]) -> list[dict]:
    return [
        {
            "criterion_id": c.id,
            "name": c.name,
            "short_name": c.short_name,
            "max_score": c.max_score,
            "average": averages.get(c.id),
        }
        for c in criteria
    ]


def team_aggregates(event_id: int) -> dict[int, dict]:
    """team_id -> {total_score, judges_scored, average_score} over submitted judges."""
    agg = {}
    for (team_id, _judge_id), total in submitted_totals(event_id).items():
        row = agg.setdefault(team_id, {"total_score": 0, "judges_scored": 0})
        row["total_score"] += total
        row["judges_scored"] += 1

    for row in agg.values():
        row["average_score"] = _round(row["total_score"] / row["judges_scored"])
    return agg


def build_leaderboard(event_id: int) -> list[dict]:
    """
    Ranked rows for an event.

    Rows are shaped like:
      {
        "rank", "team_id", "name", "project_title", "presentation_order",
        "total_score", "judges_scored", "average_score", "criteria_breakdown"
      }

    Sort: average desc (teams with no submitted judges last), total desc,
    then name so repeated queries give the same order. Teams with equal
    (average, total) share a rank.
    """
    teams = _ordered_teams(event_id)
    if not teams:
        return []

    criteria = _ordered_criteria()
    agg = team_aggregates(event_id)
    per_criterion = criteria_averages(event_id)

    rows = []
    for t in teams:
        a = agg.get(t.id, {})
        rows.append(
            {
                "team_id": t.id,
                "name": t.name,
                "project_title": t.project_title,
                "presentation_order": t.presentation_order,
                "status": t.status,
                "total_score": a.get("total_score", 0),
                "judges_scored": a.get("judges_scored", 0),
                "average_score": a.get("average_score"),
                "criteria_breakdown": _breakdown_list(criteria, per_criterion.get(t.id, {})),
            }
        )

    rows.sort(
        key=lambda r: (
            r["average_score"] is None,
            -(r["average_score"] or 0),
            -r["total_score"],
            r["name"],
        )
    )

    # ties share the same place
    pos = 0
    prev_key = None
    for i, row in enumerate(rows, start=1):
        k = (row["average_score"], row["total_score"])
        if k != prev_key:
            pos = i
        prev_key = k
        row["rank"] = pos

    return rows


def team_score_stats(event_id: int) -> dict[int, dict]:
    """
    Per-team counters for the team list:
    total_scores (any submission), completed_scores (submitted), average_score.
    """
    counts = (
        db.session.query(
            ScoreSubmission.team_id,
            func.count(ScoreSubmission.id),
            func.count(ScoreSubmission.submitted_at),
        )
        .filter(ScoreSubmission.event_id == event_id)
        .group_by(ScoreSubmission.team_id)
        .all()
    )
    agg = team_aggregates(event_id)

    out = {}
    for team_id, total, completed in counts:
        out[team_id] = {
            "total_scores": total,
            "completed_scores": completed,
            "average_score": agg.get(team_id, {}).get("average_score"),
        }
    return out


def _scores_by_submission(submission_ids: list[int]) -> dict[int, dict[int, int]]:
    if not submission_ids:
        return {}
    out = {}
    for s in Score.query.filter(Score.submission_id.in_(submission_ids)).all():
        out.setdefault(s.submission_id, {})[s.rubric_criteria_id] = s.score
    return out


def _comments_by_pair(event_id: int, team_id: Optional[int] = None) -> dict[tuple[int, int], str]:
    q = (
        db.session.query(JudgeComment.team_id, JudgeComment.judge_id, JudgeComment.comments)
        .join(Team, Team.id == JudgeComment.team_id)
        .filter(Team.event_id == event_id)
    )
    if team_id is not None:
        q = q.filter(JudgeComment.team_id == team_id)
    return {(t_id, j_id): text for t_id, j_id, text in q.all()}


def _judge_cells(event_id: int, teams: list[Team], judges: list[EventJudge], with_comments: bool = True) -> dict[int, list[dict]]:
    """team_id -> one cell per judge profile, in judge-name order."""
    team_ids = [t.id for t in teams]
    submissions = {}
    if team_ids:
        for s in ScoreSubmission.query.filter(
            ScoreSubmission.event_id == event_id,
            ScoreSubmission.team_id.in_(team_ids),
        ).all():
            submissions[(s.team_id, s.judge_id)] = s

    scores = _scores_by_submission([s.id for s in submissions.values()])
    comments = _comments_by_pair(event_id) if with_comments else {}

    cells = {}
    for t in teams:
        row = []
        for j in judges:
            sub = submissions.get((t.id, j.id))
            submitted = sub is not None and sub.is_submitted
            criterion_scores = scores.get(sub.id, {}) if sub else {}
            cell = {
                "judge_id": j.id,
                "judge_name": j.name,
                "status": submission_status(sub),
                "score_total": sum(criterion_scores.values()) if submitted else None,
                "scores": [
                    {"criterion_id": cid, "score": value}
                    for cid, value in sorted(criterion_scores.items())
                ],
                "submitted_at": sub.submitted_at if sub else None,
            }
            if with_comments:
                cell["comment"] = comments.get((t.id, j.id))
            row.append(cell)
        cells[t.id] = row
    return cells


def scoring_matrix(event_id: int) -> dict:
    """Every team against every judge profile on the event."""
    teams = _ordered_teams(event_id)
    judges = EventJudge.query.filter_by(event_id=event_id).order_by(EventJudge.name.asc()).all()
    cells = _judge_cells(event_id, teams, judges)
    agg = team_aggregates(event_id)

    return {
        "judges": [{"id": j.id, "name": j.name, "user_id": j.user_id} for j in judges],
        "criteria": [{"id": c.id, "name": c.name, "short_name": c.short_name, "max_score": c.max_score} for c in _ordered_criteria()],
        "teams": [
            {
                "team_id": t.id,
                "name": t.name,
                "project_title": t.project_title,
                "presentation_order": t.presentation_order,
                "status": t.status,
                "total_score": agg.get(t.id, {}).get("total_score", 0),
                "judges_scored": agg.get(t.id, {}).get("judges_scored", 0),
                "average_score": agg.get(t.id, {}).get("average_score"),
                "judge_scores": cells[t.id],
            }
            for t in teams
        ],
    }


def team_breakdown(event: Event, team: Team) -> dict:
    """Per-criterion averages for one team plus each judge's detail and comment."""
    criteria = _ordered_criteria()
    judges = EventJudge.query.filter_by(event_id=event.id).order_by(EventJudge.name.asc()).all()
    averages = criteria_averages(event.id, team_id=team.id).get(team.id, {})
    agg = team_aggregates(event.id).get(team.id, {})

    cells = _judge_cells(event.id, [team], judges)[team.id]

    return {
        "team_id": team.id,
        "name": team.name,
        "project_title": team.project_title,
        "total_score": agg.get("total_score", 0),
        "judges_scored": agg.get("judges_scored", 0),
        "average_score": agg.get("average_score"),
        "criteria": _breakdown_list(criteria, averages),
        "judges": [c for c in cells if c["status"] != "not-started"],
    }


def moderator_status(event: Event) -> dict:
    """Live dashboard: phase, active team, who is online and who has scored what."""
    teams = _ordered_teams(event.id)
    judges = EventJudge.query.filter_by(event_id=event.id).order_by(EventJudge.name.asc()).all()
    cells = _judge_cells(event.id, teams, judges, with_comments=False)
    presence = judge_presence(event.id)

    active = event.current_active_team
    team_rows = []
    for t in teams:
        judge_rows = cells[t.id]
        team_rows.append(
            {
                "team_id": t.id,
                "name": t.name,
                "project_title": t.project_title,
                "presentation_order": t.presentation_order,
                "status": t.status,
                "completed_count": sum(1 for c in judge_rows if c["status"] == "completed"),
                "judge_scores": [
                    {
                        "judge_id": c["judge_id"],
                        "judge_name": c["judge_name"],
                        "status": c["status"],
                        "score_total": c["score_total"],
                    }
                    for c in judge_rows
                ],
            }
        )

    completed = sum(r["completed_count"] for r in team_rows)
    return {
        "event": {
            "id": event.id,
            "name": event.name,
            "judging_phase": event.judging_phase,
            "current_active_team_id": event.current_active_team_id,
        },
        "active_team": (
            {
                "id": active.id,
                "name": active.name,
                "project_title": active.project_title,
                "status": active.status,
            }
            if active
            else None
        ),
        "judges": presence,
        "teams": team_rows,
        "summary": {
            "total_teams": len(teams),
            "total_judges": len(judges),
            "online_judges": sum(1 for p in presence if p["online"]),
            "submissions_completed": completed,
            "submissions_expected": len(teams) * len(judges),
            "current_phase": event.judging_phase,
        },
    }


def event_insights(event: Event) -> dict:
    counts = event_counts([event.id])[event.id]
    totals = list(submitted_totals(event.id).items())

    return {
        "total_teams": counts["teams_count"],
        "total_judges": counts["judges_count"],
        "completed_scores": len(totals),
        "teams_with_scores": len({team_id for (team_id, _), _ in totals}),
        "average_total_score": _round(sum(t for _, t in totals) / len(totals)) if totals else None,
    }
