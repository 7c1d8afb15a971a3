from datetime import datetime

import pytest

from judgeportal import create_app
from judgeportal.config import TestConfig
from judgeportal.extensions import db as _db
from judgeportal.helpers.auth import LocalJwtProvider, hash_password
from judgeportal.helpers.rubric import list_criteria, seed_rubric
from judgeportal.models import Event, EventJudge, Team, TeamMember, User
from judgeportal.models.enums import EventType, JudgingPhase, UserRole

PASSWORD = "correct-horse"


@pytest.fixture
def provider():
    return LocalJwtProvider(
        TestConfig.JWT_SECRET,
        TestConfig.JWT_ISSUER,
        TestConfig.JWT_AUDIENCE,
        TestConfig.JWT_TTL_HOURS,
    )


@pytest.fixture
def app(provider):
    app = create_app(TestConfig, auth_provider=provider)
    with app.app_context():
        _db.create_all()
        seed_rubric()
        _db.session.commit()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def headers_for(provider):
    def _headers(user):
        return {"Authorization": f"Bearer {provider.issue_token(user)}"}
    return _headers


@pytest.fixture
def criteria(app):
    return list_criteria()


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=UserRole.JUDGE.value, email=None, name=None, active=True):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=email or f"user{n}@example.edu",
            name=name or f"User {n}",
            role=role,
            is_active=active,
            password_hash=hash_password(PASSWORD),
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN.value, email="admin@example.edu", name="Admin")


@pytest.fixture
def moderator(make_user):
    return make_user(UserRole.MODERATOR.value, email="mod@example.edu", name="Moderator")


@pytest.fixture
def judge_user(make_user):
    return make_user(UserRole.JUDGE.value, email="judge@example.edu", name="Judge Account")


@pytest.fixture
def make_event(db):
    def _make(name="Spring Hackathon", phase=JudgingPhase.IN_PROGRESS.value, **kwargs):
        event = Event(
            name=name,
            event_type=kwargs.pop("event_type", EventType.HACKATHON.value),
            start_date=kwargs.pop("start_date", datetime(2026, 3, 15, 9, 0)),
            end_date=kwargs.pop("end_date", datetime(2026, 3, 15, 18, 0)),
            judging_phase=phase,
            **kwargs,
        )
        db.session.add(event)
        db.session.commit()
        return event
    return _make


@pytest.fixture
def event(make_event):
    return make_event()


@pytest.fixture
def make_team(db):
    def _make(event, name, order=None, members=()):
        team = Team(event_id=event.id, name=name, presentation_order=order)
        db.session.add(team)
        db.session.flush()
        for member in members:
            db.session.add(TeamMember(team_id=team.id, name=member))
        db.session.commit()
        return team
    return _make


@pytest.fixture
def make_judge(db):
    def _make(event, user, name):
        judge = EventJudge(event_id=event.id, user_id=user.id, name=name)
        db.session.add(judge)
        db.session.commit()
        return judge
    return _make


@pytest.fixture
def submit(client, headers_for, criteria):
    """POST /scores with one score per criterion (or an explicit list)."""
    def _submit(user, event, team, judge, values=None, scores=None, **extra):
        if scores is None:
            values = values if values is not None else [10] * len(criteria)
            scores = [{"criterionId": c.id, "score": v} for c, v in zip(criteria, values)]
        body = {
            "eventId": event.id,
            "teamId": team.id,
            "judgeId": judge.id,
            "scores": scores,
        }
        body.update(extra)
        return client.post("/scores", json=body, headers=headers_for(user))
    return _submit
