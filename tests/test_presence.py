"""
Presence is derived from sessions: open and active within the window.
"""
from datetime import timedelta

from sqlalchemy.exc import OperationalError

from judgeportal.config import JUDGE_ONLINE_WINDOW_SECONDS
from judgeportal.helpers import presence
from judgeportal.helpers.date import utcnow
from judgeportal.models import JudgeSession


def _session(db, event, judge, last_activity, logged_out_at=None):
    s = JudgeSession(
        event_id=event.id,
        judge_id=judge.id,
        logged_in_at=last_activity - timedelta(minutes=30),
        last_activity=last_activity,
        logged_out_at=logged_out_at,
    )
    db.session.add(s)
    db.session.commit()
    return s


def _online_map(event, now):
    return {row["judge_id"]: row["online"] for row in presence.judge_presence(event.id, now=now)}


def test_window_is_two_minutes():
    assert JUDGE_ONLINE_WINDOW_SECONDS == 120


def test_recent_heartbeat_is_online(db, event, judge_user, make_judge):
    judge = make_judge(event, judge_user, "Judge 1")
    now = utcnow()
    _session(db, event, judge, now - timedelta(minutes=1))

    assert _online_map(event, now) == {judge.id: True}


def test_stale_heartbeat_is_offline(db, event, judge_user, make_judge):
    judge = make_judge(event, judge_user, "Judge 1")
    now = utcnow()
    _session(db, event, judge, now - timedelta(minutes=10))

    assert _online_map(event, now) == {judge.id: False}


def test_logged_out_is_offline_even_if_recent(db, event, judge_user, make_judge):
    judge = make_judge(event, judge_user, "Judge 1")
    now = utcnow()
    s = _session(db, event, judge, now - timedelta(seconds=5), logged_out_at=now)

    assert _online_map(event, now) == {judge.id: False}
    assert presence.session_is_online(s, now) is False


def test_session_is_online_helper(db, event, judge_user, make_judge):
    judge = make_judge(event, judge_user, "Judge 1")
    now = utcnow()
    s = _session(db, event, judge, now - timedelta(seconds=30))

    assert presence.session_is_online(s, now) is True
    assert presence.session_is_online(s, now + timedelta(minutes=5)) is False
    assert presence.session_is_online(None, now) is False


def test_heartbeat_without_session_opens_one(client, event, judge_user, make_judge, headers_for):
    judge = make_judge(event, judge_user, "Judge 1")

    resp = client.post(
        "/judge/heartbeat",
        json={"eventId": event.id, "judgeId": judge.id},
        headers=headers_for(judge_user),
    )
    assert resp.status_code == 200
    assert resp.get_json()["session"]["online"] is True
    assert JudgeSession.query.filter_by(judge_id=judge.id).count() == 1


def test_heartbeat_updates_latest_open_session(db, client, event, judge_user, make_judge, headers_for):
    judge = make_judge(event, judge_user, "Judge 1")
    s = _session(db, event, judge, utcnow() - timedelta(minutes=10))
    session_id = s.id

    client.post(
        "/judge/heartbeat",
        json={"eventId": event.id, "judgeId": judge.id},
        headers=headers_for(judge_user),
    )

    db.session.expire_all()
    assert JudgeSession.query.filter_by(judge_id=judge.id).count() == 1
    refreshed = db.session.get(JudgeSession, session_id)
    assert presence.session_is_online(refreshed)


def test_heartbeat_requires_identifiers(client, event, judge_user, headers_for):
    resp = client.post("/judge/heartbeat", json={"eventId": event.id}, headers=headers_for(judge_user))
    assert resp.status_code == 400


def test_heartbeat_for_someone_elses_profile_is_forbidden(client, event, make_user, judge_user, make_judge, headers_for):
    theirs = make_judge(event, make_user(), "Judge 2")
    resp = client.post(
        "/judge/heartbeat",
        json={"eventId": event.id, "judgeId": theirs.id},
        headers=headers_for(judge_user),
    )
    assert resp.status_code == 403


def test_session_start_closes_previous_sessions(db, client, event, judge_user, make_judge, headers_for):
    judge = make_judge(event, judge_user, "Judge 1")
    old = _session(db, event, judge, utcnow())
    old_id = old.id

    resp = client.post(
        "/judge/session/start",
        json={"eventId": event.id, "judgeId": judge.id},
        headers=headers_for(judge_user),
    )
    assert resp.status_code == 201

    db.session.expire_all()
    assert db.session.get(JudgeSession, old_id).logged_out_at is not None
    open_sessions = JudgeSession.query.filter_by(judge_id=judge.id, logged_out_at=None).all()
    assert len(open_sessions) == 1
    assert open_sessions[0].id == resp.get_json()["session"]["id"]


def test_logout_ends_presence_immediately(client, event, judge_user, make_judge, headers_for):
    judge = make_judge(event, judge_user, "Judge 1")
    body = {"eventId": event.id, "judgeId": judge.id}
    client.post("/judge/session/start", json=body, headers=headers_for(judge_user))

    resp = client.post("/judge/logout", json=body, headers=headers_for(judge_user))
    assert resp.status_code == 200
    assert resp.get_json()["closed"] == 1

    online = client.get(f"/events/{event.id}/judges/online", headers=headers_for(judge_user)).get_json()
    assert online["judges"][0]["online"] is False


def test_online_list_ordering(db, client, event, make_user, make_judge, judge_user, headers_for):
    now = utcnow()
    zed = make_judge(event, make_user(), "Zed")
    amy = make_judge(event, make_user(), "Amy")
    bob = make_judge(event, make_user(), "Bob")
    make_judge(event, make_user(), "Cal")

    _session(db, event, zed, now - timedelta(seconds=10))
    _session(db, event, amy, now - timedelta(seconds=60))
    _session(db, event, bob, now - timedelta(minutes=30))

    rows = client.get(f"/events/{event.id}/judges/online", headers=headers_for(judge_user)).get_json()["judges"]
    assert [r["name"] for r in rows] == ["Zed", "Amy", "Bob", "Cal"]
    assert [r["online"] for r in rows] == [True, True, False, False]


def test_presence_failure_reads_as_offline(db, event, judge_user, make_judge, monkeypatch):
    judge = make_judge(event, judge_user, "Judge 1")
    _session(db, event, judge, utcnow())

    def broken(*args, **kwargs):
        raise OperationalError("SELECT ...", {}, Exception("connection lost"))

    monkeypatch.setattr(presence, "online_judge_ids", broken)

    rows = presence.judge_presence(event.id)
    assert rows == [
        {
            "judge_id": judge.id,
            "name": "Judge 1",
            "user_id": judge_user.id,
            "online": False,
            "last_activity": None,
            "teams_scored": 0,
        }
    ]
