from judgeportal.helpers.schema import DEMO_PASSWORD
from judgeportal.models import Event, RubricCriterion, User
from judgeportal.models.enums import UserRole


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "database": "ok"}


def test_seed_data_loads_demo_event_once(client, headers_for, make_user):
    caller = make_user(UserRole.ADMIN.value, email="ops@example.edu")

    resp = client.post("/admin/seed-data", headers=headers_for(caller))
    assert resp.status_code == 201
    summary = resp.get_json()["summary"]
    assert summary["events"] == 2
    assert summary["teams"] == 3

    hackathon = Event.query.filter_by(name="Spring Hackathon").one()
    assert hackathon.current_active_team.name == "Code Warriors"

    again = client.post("/admin/seed-data", headers=headers_for(caller))
    assert again.status_code == 200
    assert again.get_json()["seeded"] is False
    assert Event.query.count() == 2


def test_seeded_accounts_can_log_in(client, headers_for, make_user):
    caller = make_user(UserRole.ADMIN.value, email="ops@example.edu")
    client.post("/admin/seed-data", headers=headers_for(caller))

    resp = client.post("/auth/token", json={"email": "judges@example.edu", "password": DEMO_PASSWORD})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    board = client.get(
        f"/events/{Event.query.filter_by(name='Spring Hackathon').one().id}/leaderboard",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert board.status_code == 200
    rows = board.get_json()["leaderboard"]
    assert rows[0]["name"] == "Debug Squad"
    assert rows[0]["judges_scored"] == 1
    assert rows[0]["total_score"] == 87


def test_admin_routes_need_admin(client, headers_for, moderator):
    assert client.post("/admin/seed-data", headers=headers_for(moderator)).status_code == 403
    assert client.post("/admin/init-schema").status_code == 401


def test_init_schema_rebuilds_rubric(client, headers_for, admin, event):
    resp = client.post("/admin/init-schema", headers=headers_for(admin))
    assert resp.status_code == 200
    assert resp.get_json()["rubric_criteria"] == 4

    assert Event.query.count() == 0
    assert User.query.count() == 0
    assert RubricCriterion.query.count() == 4


def test_failed_init_schema_leaves_data_in_place(client, headers_for, admin, event, monkeypatch):
    def broken_rubric(conn):
        raise RuntimeError("rubric insert failed")

    monkeypatch.setattr("judgeportal.helpers.schema.insert_default_rubric", broken_rubric)

    resp = client.post("/admin/init-schema", headers=headers_for(admin))
    assert resp.status_code == 500

    assert Event.query.filter_by(name="Spring Hackathon").count() == 1
    assert User.query.filter_by(email="admin@example.edu").count() == 1
    assert RubricCriterion.query.count() == 4


def test_cli_init_db_and_seed(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["init-db"])
    assert result.exit_code == 0
    assert "0 rubric criteria added" in result.output

    result = runner.invoke(args=["seed-data"])
    assert result.exit_code == 0
    assert "Seeded" in result.output

    result = runner.invoke(args=["seed-data"])
    assert "already present" in result.output
