"""
Schema bootstrap and demo data.

Used by the `init-db` / `seed-data` CLI commands and the admin endpoints.
"""
import logging
from datetime import datetime, timedelta

from judgeportal.extensions import db
from judgeportal.helpers.activity import log_activity
from judgeportal.helpers.auth import hash_password
from judgeportal.helpers.date import utcnow
from judgeportal.helpers.rubric import insert_default_rubric, list_criteria, seed_rubric
from judgeportal.models import (
    Event,
    EventJudge,
    JudgeComment,
    JudgeSession,
    Score,
    ScoreSubmission,
    Sponsor,
    Team,
    TeamMember,
    User,
)
from judgeportal.models.enums import EventStatus, EventType, JudgingPhase, TeamStatus, UserRole

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "judging-demo"


def create_schema() -> int:
    """Create any missing tables and the default rubric."""
    db.create_all()
    added = seed_rubric()
    db.session.commit()
    return added


def reset_schema() -> int:
    """
    Drop every table and rebuild it with the default rubric.

    All three steps share one connection and one transaction; if any of them
    fails the previous tables and rows are left as they were.
    """
    logger.warning("Dropping and recreating all tables")
    db.session.remove()
    with db.engine.begin() as conn:
        db.metadata.drop_all(bind=conn)
        db.metadata.create_all(bind=conn)
        added = insert_default_rubric(conn)
    return added


def seed_demo_data() -> dict:
    """
    Demo users, a sponsor, two events and a partly judged hackathon.
    Runs in one transaction. Refuses to run twice.
    """
    if User.query.filter_by(email="admin@example.edu").first():
        return {"seeded": False, "reason": "Demo data already present"}

    seed_rubric()
    db.session.flush()

    def _user(email, name, role):
        u = User(email=email, name=name, role=role, password_hash=hash_password(DEMO_PASSWORD))
        db.session.add(u)
        return u

    admin = _user("admin@example.edu", "Ada Admin", UserRole.ADMIN.value)
    _user("moderator@example.edu", "Morgan Moderator", UserRole.MODERATOR.value)
    judge_user = _user("judges@example.edu", "Judging Table", UserRole.JUDGE.value)

    sponsor = Sponsor(
        name="College of Engineering",
        logo_url="https://example.edu/logo.png",
        website_url="https://engineering.example.edu",
        tier="platinum",
        primary_color="#500000",
        secondary_color="#FFFFFF",
        text_color="#FFFFFF",
    )
    db.session.add(sponsor)
    db.session.flush()

    hackathon = Event(
        name="Spring Hackathon",
        description="Annual spring coding competition focusing on web development and AI",
        event_type=EventType.HACKATHON.value,
        status=EventStatus.ACTIVE.value,
        location="Engineering Center",
        start_date=datetime(2026, 3, 15, 9, 0),
        end_date=datetime(2026, 3, 15, 18, 0),
        registration_deadline=datetime(2026, 3, 10, 23, 59, 59),
        max_team_size=4,
        min_team_size=2,
        max_teams=20,
        sponsor_id=sponsor.id,
        judging_phase=JudgingPhase.IN_PROGRESS.value,
        created_by=admin.id,
    )
    design = Event(
        name="Summer Design Challenge",
        description="UI/UX design competition for mobile applications",
        event_type=EventType.DESIGN_COMPETITION.value,
        status=EventStatus.UPCOMING.value,
        location="Student Center",
        start_date=datetime(2026, 6, 20, 10, 0),
        end_date=datetime(2026, 6, 20, 17, 0),
        registration_deadline=datetime(2026, 6, 15, 23, 59, 59),
        max_team_size=3,
        min_team_size=1,
        max_teams=15,
        judging_phase=JudgingPhase.NOT_STARTED.value,
        created_by=admin.id,
    )
    db.session.add_all([hackathon, design])
    db.session.flush()

    teams = [
        Team(event_id=hackathon.id, name="Code Warriors", project_title="AI-Powered Task Manager",
             description="Building an intelligent task prioritization system",
             status=TeamStatus.ACTIVE.value, presentation_order=1),
        Team(event_id=hackathon.id, name="Debug Squad", project_title="CollabCode Platform",
             description="Creating a real-time collaborative coding environment",
             status=TeamStatus.COMPLETED.value, presentation_order=2),
        Team(event_id=hackathon.id, name="IoT Innovators", project_title="Smart Campus Solution",
             description="Developing IoT sensors for energy monitoring",
             status=TeamStatus.WAITING.value, presentation_order=3),
    ]
    db.session.add_all(teams)
    db.session.flush()
    hackathon.current_active_team_id = teams[0].id

    db.session.add_all([
        TeamMember(team_id=teams[0].id, name="Bob Builder", email="bob.builder@example.edu"),
        TeamMember(team_id=teams[0].id, name="Alice Developer", email="alice.dev@example.edu"),
        TeamMember(team_id=teams[1].id, name="Charlie Coder", email="charlie.code@example.edu"),
        TeamMember(team_id=teams[1].id, name="Diana Designer", email="diana.design@example.edu"),
    ])

    judges = [
        EventJudge(event_id=hackathon.id, user_id=judge_user.id, name=name)
        for name in ("Judge 1", "Judge 2", "Judge 3")
    ]
    db.session.add_all(judges)
    db.session.flush()

    now = utcnow()
    db.session.add(
        JudgeSession(
            event_id=hackathon.id,
            judge_id=judges[0].id,
            logged_in_at=now - timedelta(hours=2),
            last_activity=now,
        )
    )

    submission = ScoreSubmission(
        judge_id=judges[0].id,
        event_id=hackathon.id,
        team_id=teams[1].id,
        started_at=now - timedelta(minutes=25),
        submitted_at=now,
        time_spent_seconds=1500,
    )
    db.session.add(submission)
    db.session.flush()

    reflections = [
        (22, "Clear explanation of problem and solution. Good use of visuals."),
        (21, "Strong technical feasibility. Market potential needs more research."),
        (23, "Excellent demo with live coding. Very engaging presentation."),
        (21, "Team worked well together. Good Q&A responses."),
    ]
    for criterion, (value, note) in zip(list_criteria(), reflections):
        db.session.add(
            Score(
                submission_id=submission.id,
                judge_id=judges[0].id,
                team_id=teams[1].id,
                rubric_criteria_id=criterion.id,
                score=value,
                reflection=note,
            )
        )
    db.session.add(
        JudgeComment(
            submission_id=submission.id,
            judge_id=judges[0].id,
            team_id=teams[1].id,
            comments="Impressive project with strong technical implementation. "
                     "Consider expanding on the business model for next round.",
        )
    )

    log_activity("Event Started", event_id=hackathon.id, user_id=admin.id,
                 description="Spring Hackathon judging phase has begun",
                 activity_type="event_started", icon_name="Calendar")
    log_activity("Judge Assigned", event_id=hackathon.id, user_id=admin.id,
                 description="Judge 1 added to judging panel",
                 activity_type="judge_assigned", icon_name="UsersRound", tone="success")
    log_activity("Team Activated", event_id=hackathon.id, user_id=admin.id,
                 description="Code Warriors is now presenting to judges",
                 activity_type="team_activated", icon_name="Users")

    db.session.commit()
    logger.info("Demo data seeded (event %s)", hackathon.id)

    return {
        "seeded": True,
        "summary": {
            "users": 3,
            "sponsors": 1,
            "events": 2,
            "teams": len(teams),
            "team_members": 4,
            "judges": len(judges),
            "score_submissions": 1,
            "activity_log": 3,
        },
    }
