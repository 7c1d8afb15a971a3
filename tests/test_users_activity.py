from judgeportal.helpers.activity import log_activity
from judgeportal.models import ActivityLog


def test_list_users(client, admin, judge_user, moderator, headers_for):
    rows = client.get("/users", headers=headers_for(admin)).get_json()["users"]
    assert {u["email"] for u in rows} == {admin.email, judge_user.email, moderator.email}
    assert all("password_hash" not in u for u in rows)

    judges = client.get("/users?role=judge", headers=headers_for(admin)).get_json()["users"]
    assert [u["email"] for u in judges] == [judge_user.email]


def test_change_role(client, admin, judge_user, headers_for):
    resp = client.put(f"/users/{judge_user.id}/role", json={"role": "moderator"}, headers=headers_for(admin))
    assert resp.status_code == 200
    assert resp.get_json()["user"]["role"] == "moderator"

    # the new role applies to the next request
    assert client.get("/events/1/moderator/status", headers=headers_for(judge_user)).status_code == 404

    bad = client.put(f"/users/{judge_user.id}/role", json={"role": "superuser"}, headers=headers_for(admin))
    assert bad.status_code == 400


def test_deactivate_user(client, admin, judge_user, headers_for):
    token_headers = headers_for(judge_user)
    resp = client.put(f"/users/{judge_user.id}/active", json={"isActive": False}, headers=headers_for(admin))
    assert resp.status_code == 200
    assert resp.get_json()["user"]["is_active"] is False

    assert client.get("/auth/me", headers=token_headers).status_code == 401

    own = client.put(f"/users/{admin.id}/active", json={"isActive": False}, headers=headers_for(admin))
    assert own.status_code == 400

    not_bool = client.put(f"/users/{judge_user.id}/active", json={"isActive": "no"}, headers=headers_for(admin))
    assert not_bool.status_code == 400


def test_missing_user_is_404(client, admin, headers_for):
    assert client.put("/users/9999/role", json={"role": "judge"}, headers=headers_for(admin)).status_code == 404


# =============================================================================
# Activity feed
# =============================================================================

def test_activity_newest_first_and_scoped(db, client, make_event, moderator, headers_for):
    first = make_event("First")
    second = make_event("Second")
    for i in range(3):
        log_activity(f"First {i}", event_id=first.id)
    log_activity("Second 0", event_id=second.id)
    db.session.commit()

    rows = client.get(f"/activity?eventId={first.id}", headers=headers_for(moderator)).get_json()["activity"]
    assert [r["title"] for r in rows] == ["First 2", "First 1", "First 0"]

    limited = client.get("/activity?limit=2", headers=headers_for(moderator)).get_json()["activity"]
    assert len(limited) == 2


def test_activity_limit_is_capped(db, client, moderator, headers_for):
    for i in range(205):
        log_activity(f"Entry {i}")
    db.session.commit()

    rows = client.get("/activity?limit=1000", headers=headers_for(moderator)).get_json()["activity"]
    assert len(rows) == 200

    default = client.get("/activity", headers=headers_for(moderator)).get_json()["activity"]
    assert len(default) == 50


def test_activity_is_staff_only(client, judge_user, headers_for):
    assert client.get("/activity", headers=headers_for(judge_user)).status_code == 403


def test_activity_entry_rolls_back_with_failed_action(client, event, admin, headers_for):
    client.post(f"/events/{event.id}/teams", json={"name": "A", "presentationOrder": 1}, headers=headers_for(admin))
    client.post(f"/events/{event.id}/teams", json={"name": "B", "presentationOrder": 1}, headers=headers_for(admin))

    assert ActivityLog.query.filter_by(title="Team Created").count() == 1


# =============================================================================
# Sponsors
# =============================================================================

def test_sponsor_crud(client, admin, headers_for):
    resp = client.post(
        "/sponsors",
        json={"name": "College of Engineering", "tier": "gold", "primaryColor": "#500000"},
        headers=headers_for(admin),
    )
    assert resp.status_code == 201
    sponsor = resp.get_json()["sponsor"]
    assert sponsor["secondary_color"] == "#FFFFFF"

    bad = client.put(f"/sponsors/{sponsor['id']}", json={"textColor": "red"}, headers=headers_for(admin))
    assert bad.status_code == 400

    ok = client.put(f"/sponsors/{sponsor['id']}", json={"textColor": "#abcdef"}, headers=headers_for(admin))
    assert ok.get_json()["sponsor"]["text_color"] == "#ABCDEF"

    assert client.delete(f"/sponsors/{sponsor['id']}", headers=headers_for(admin)).status_code == 204
    assert client.get("/sponsors", headers=headers_for(admin)).get_json()["sponsors"] == []


def test_deleting_sponsor_keeps_event(db, client, make_event, admin, headers_for):
    resp = client.post("/sponsors", json={"name": "Acme"}, headers=headers_for(admin))
    sponsor_id = resp.get_json()["sponsor"]["id"]
    event = make_event(sponsor_id=sponsor_id)

    client.delete(f"/sponsors/{sponsor_id}", headers=headers_for(admin))

    db.session.expire_all()
    assert event.sponsor_id is None
