from datetime import timedelta

import pytest
from jose import jwt

from judgeportal import create_app
from judgeportal.config import TestConfig
from judgeportal.extensions import db as _db
from judgeportal.helpers.account import sync_user
from judgeportal.helpers.auth import FixedUserProvider, LocalJwtProvider, build_auth_provider
from judgeportal.helpers.date import utcnow
from judgeportal.models import User

PASSWORD = "correct-horse"


def test_requests_without_token_are_rejected(client, event):
    resp = client.get(f"/events/{event.id}")
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Authentication required"}


def test_garbage_and_foreign_tokens_are_rejected(client, event, judge_user):
    assert client.get("/events", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401
    assert client.get("/events", headers={"Authorization": "Token abc"}).status_code == 401

    other = LocalJwtProvider("some-other-secret", TestConfig.JWT_ISSUER, TestConfig.JWT_AUDIENCE)
    forged = {"Authorization": f"Bearer {other.issue_token(judge_user)}"}
    assert client.get("/events", headers=forged).status_code == 401


def test_expired_token_is_rejected(client, judge_user):
    past = utcnow() - timedelta(hours=10)
    token = jwt.encode(
        {
            "sub": str(judge_user.id),
            "iss": TestConfig.JWT_ISSUER,
            "aud": TestConfig.JWT_AUDIENCE,
            "iat": past,
            "exp": past + timedelta(hours=1),
        },
        TestConfig.JWT_SECRET,
        algorithm="HS256",
    )
    assert client.get("/events", headers={"Authorization": f"Bearer {token}"}).status_code == 401


def test_inactive_user_cannot_authenticate(client, make_user, headers_for):
    user = make_user(active=False)
    resp = client.get("/auth/me", headers=headers_for(user))
    assert resp.status_code == 401


def test_token_login_roundtrip(client, judge_user):
    resp = client.post("/auth/token", json={"email": "JUDGE@example.edu", "password": PASSWORD})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.get_json()["user"]["email"] == "judge@example.edu"
    assert me.get_json()["user"]["last_login"] is not None


def test_token_login_wrong_password(client, judge_user):
    resp = client.post("/auth/token", json={"email": judge_user.email, "password": "nope"})
    assert resp.status_code == 401
    assert client.post("/auth/token", json={"email": judge_user.email}).status_code == 400


def test_me_lists_judge_profiles(client, event, judge_user, make_judge, headers_for):
    make_judge(event, judge_user, "Table 1")
    body = client.get("/auth/me", headers=headers_for(judge_user)).get_json()["user"]
    assert [p["name"] for p in body["judge_profiles"]] == ["Table 1"]


def test_role_checks(client, judge_user, moderator, admin, headers_for):
    assert client.get("/users", headers=headers_for(judge_user)).status_code == 403
    assert client.get("/users", headers=headers_for(moderator)).status_code == 403
    assert client.get("/users", headers=headers_for(admin)).status_code == 200


def test_health_needs_no_auth(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["database"] == "ok"


def test_sync_user_existing_local_account(client, judge_user, headers_for):
    resp = client.post("/auth/sync-user", json={}, headers=headers_for(judge_user))
    assert resp.status_code == 200
    assert resp.get_json()["created"] is False


def test_sync_user_creates_and_links(app):
    user, created = sync_user({"sub": "auth0|abc", "email": "New.Judge@Example.edu"}, {"name": "New Judge"})
    assert created is True
    assert user.is_active is True
    assert user.role == "judge"
    assert user.email == "new.judge@example.edu"

    again, created_again = sync_user({"sub": "auth0|abc"}, {"email": "new.judge@example.edu"})
    assert created_again is False
    assert again.id == user.id


def test_sync_user_links_subject_to_precreated_account(app, make_user):
    existing = make_user(email="invited@example.edu")
    user, created = sync_user({"sub": "auth0|xyz", "email": "invited@example.edu"}, {})
    assert created is False
    assert user.id == existing.id
    assert user.auth_subject == "auth0|xyz"


def test_sync_user_signs_up_new_identity(client):
    now = utcnow()
    token = jwt.encode(
        {
            "sub": "auth0|first-login",
            "email": "fresh@example.edu",
            "iss": TestConfig.JWT_ISSUER,
            "aud": TestConfig.JWT_AUDIENCE,
            "iat": now,
            "exp": now + timedelta(hours=1),
        },
        TestConfig.JWT_SECRET,
        algorithm="HS256",
    )

    resp = client.post("/auth/sync-user", json={"name": "Fresh Judge"}, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["created"] is True
    assert body["user"]["is_active"] is True
    assert body["user"]["role"] == "judge"

    user = User.query.filter_by(auth_subject="auth0|first-login").one()
    assert user.email == "fresh@example.edu"
    assert user.last_login is not None


def test_token_error_details_hidden_in_production(app, client):
    resp = client.get("/events", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert "details" in resp.get_json()

    app.config["APP_ENV"] = "production"
    resp = client.get("/events", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid token"}


# =============================================================================
# Provider selection
# =============================================================================

def test_fixed_user_provider():
    app = create_app(TestConfig, auth_provider=FixedUserProvider(1))
    with app.app_context():
        _db.create_all()
        _db.session.add(User(email="demo@example.edu", name="Demo", role="admin"))
        _db.session.commit()

        client = app.test_client()
        resp = client.get("/auth/me")
        assert resp.status_code == 200
        assert resp.get_json()["user"]["email"] == "demo@example.edu"

        # no token endpoint outside the local JWT provider
        assert client.post("/auth/token", json={}).status_code == 404

        _db.session.remove()
        _db.drop_all()


def test_build_auth_provider_from_config():
    provider = build_auth_provider({
        "AUTH_PROVIDER": "local-jwt",
        "JWT_SECRET": "s",
        "JWT_ISSUER": "i",
        "JWT_AUDIENCE": "a",
    })
    assert provider.name == "local-jwt"

    auth0 = build_auth_provider({"AUTH_PROVIDER": "auth0", "AUTH0_DOMAIN": "x.auth0.com", "AUTH0_AUDIENCE": "api"})
    assert auth0.name == "auth0"
    assert auth0.issuer == "https://x.auth0.com/"


def test_unknown_provider_is_a_startup_error():
    with pytest.raises(ValueError, match="magic"):
        build_auth_provider({"AUTH_PROVIDER": "magic"})
