from judgeportal.models import (
    ActivityLog,
    Event,
    EventJudge,
    JudgeComment,
    JudgeSession,
    Score,
    ScoreSubmission,
    Team,
    TeamMember,
)

EVENT_BODY = {
    "name": "Pitch Night",
    "eventType": "pitch_competition",
    "startDate": "2026-04-01T18:00:00Z",
    "endDate": "2026-04-01T21:00:00Z",
    "minTeamSize": 1,
    "maxTeamSize": 5,
}


def test_admin_creates_event(client, admin, headers_for):
    resp = client.post("/events", json=EVENT_BODY, headers=headers_for(admin))
    assert resp.status_code == 201

    event = resp.get_json()["event"]
    assert event["name"] == "Pitch Night"
    assert event["status"] == "upcoming"
    assert event["judging_phase"] == "not-started"
    assert event["start_date"] == "2026-04-01T18:00:00"
    assert event["created_by"] == admin.id

    assert ActivityLog.query.filter_by(event_id=event["id"], title="Event Created").count() == 1


def test_create_event_validation(client, admin, headers_for):
    bad_bodies = [
        {**EVENT_BODY, "name": "  "},
        {**EVENT_BODY, "eventType": "bake-off"},
        {**EVENT_BODY, "startDate": "tomorrow"},
        {**EVENT_BODY, "endDate": "2026-03-01T00:00:00Z"},
        {**EVENT_BODY, "minTeamSize": 6},
        {**EVENT_BODY, "maxTeamSize": 0},
    ]
    for body in bad_bodies:
        resp = client.post("/events", json=body, headers=headers_for(admin))
        assert resp.status_code == 400, body

    assert Event.query.count() == 0


def test_only_admins_create_events(client, moderator, judge_user, headers_for):
    assert client.post("/events", json=EVENT_BODY, headers=headers_for(moderator)).status_code == 403
    assert client.post("/events", json=EVENT_BODY, headers=headers_for(judge_user)).status_code == 403
    assert client.post("/events", json=EVENT_BODY).status_code == 401


def test_list_events_filters(client, make_event, admin, headers_for):
    make_event("Hack", status="active")
    make_event("Design", event_type="design_competition", status="upcoming")

    all_events = client.get("/events", headers=headers_for(admin)).get_json()["events"]
    assert {e["name"] for e in all_events} == {"Hack", "Design"}

    active = client.get("/events?status=active", headers=headers_for(admin)).get_json()["events"]
    assert [e["name"] for e in active] == ["Hack"]

    design = client.get("/events?type=design_competition", headers=headers_for(admin)).get_json()["events"]
    assert [e["name"] for e in design] == ["Design"]

    assert client.get("/events?status=bogus", headers=headers_for(admin)).status_code == 400


def test_judges_only_see_their_events(client, make_event, judge_user, make_judge, headers_for):
    mine = make_event("Mine")
    make_event("Not Mine")
    make_judge(mine, judge_user, "Judge 1")

    events = client.get("/events", headers=headers_for(judge_user)).get_json()["events"]
    assert [e["name"] for e in events] == ["Mine"]
    assert events[0]["judges_count"] == 1


def test_event_detail_includes_stats(client, event, make_team, judge_user, make_judge, submit, headers_for):
    team = make_team(event, "A")
    judge = make_judge(event, judge_user, "Judge 1")
    submit(judge_user, event, team, judge)

    body = client.get(f"/events/{event.id}", headers=headers_for(judge_user)).get_json()["event"]
    assert body["teams_count"] == 1
    assert body["judges_count"] == 1
    assert body["submissions_completed"] == 1
    assert body["submissions_in_progress"] == 0

    assert client.get("/events/9999", headers=headers_for(judge_user)).status_code == 404


# =============================================================================
# Updates go through an allow-list
# =============================================================================

def test_update_event_fields(db, client, event, moderator, headers_for):
    resp = client.put(
        f"/events/{event.id}",
        json={"location": "Main Hall", "maxTeams": 12, "status": "active"},
        headers=headers_for(moderator),
    )
    assert resp.status_code == 200

    db.session.expire_all()
    updated = db.session.get(Event, event.id)
    assert updated.location == "Main Hall"
    assert updated.max_teams == 12
    assert updated.status == "active"


def test_update_rejects_unknown_and_protected_fields(db, client, event, make_team, admin, headers_for):
    team = make_team(event, "A")

    for body in (
        {"judgingPhase": "ended"},
        {"currentActiveTeamId": team.id},
        {"created_by": 1},
        {"name": "Renamed", "id": 99},
    ):
        resp = client.put(f"/events/{event.id}", json=body, headers=headers_for(admin))
        assert resp.status_code == 400, body

    db.session.expire_all()
    unchanged = db.session.get(Event, event.id)
    assert unchanged.name == "Spring Hackathon"
    assert unchanged.judging_phase == "in-progress"
    assert unchanged.current_active_team_id is None


def test_update_with_empty_body_is_rejected(client, event, admin, headers_for):
    resp = client.put(f"/events/{event.id}", json={}, headers=headers_for(admin))
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "No fields to update"


def test_update_keeps_dates_consistent(client, event, admin, headers_for):
    resp = client.put(
        f"/events/{event.id}",
        json={"endDate": "2020-01-01T00:00:00"},
        headers=headers_for(admin),
    )
    assert resp.status_code == 400


def test_judges_cannot_update_events(client, event, judge_user, headers_for):
    resp = client.put(f"/events/{event.id}", json={"name": "Mine now"}, headers=headers_for(judge_user))
    assert resp.status_code == 403


# =============================================================================
# Delete
# =============================================================================

def test_delete_event_cascades(db, client, event, make_team, judge_user, make_judge, admin, submit, headers_for):
    a = make_team(event, "A", members=["Bob", "Alice"])
    b = make_team(event, "B")
    judge = make_judge(event, judge_user, "Judge 1")
    submit(judge_user, event, a, judge, overallComment="fine")
    client.put(f"/events/{event.id}/team-active", json={"teamId": b.id}, headers=headers_for(admin))
    client.post("/judge/heartbeat", json={"eventId": event.id, "judgeId": judge.id}, headers=headers_for(judge_user))
    event_id = event.id

    resp = client.delete(f"/events/{event_id}", headers=headers_for(admin))
    assert resp.status_code == 204

    db.session.expire_all()
    assert db.session.get(Event, event_id) is None
    for model in (Team, EventJudge, ScoreSubmission, JudgeSession):
        assert model.query.filter_by(event_id=event_id).count() == 0, model
    assert TeamMember.query.count() == 0
    assert Score.query.count() == 0
    assert JudgeComment.query.count() == 0
    assert ActivityLog.query.filter_by(event_id=event_id).count() == 0
    assert ActivityLog.query.filter_by(title="Event Deleted").count() == 1


def test_only_admins_delete_events(client, event, moderator, headers_for):
    assert client.delete(f"/events/{event.id}", headers=headers_for(moderator)).status_code == 403
