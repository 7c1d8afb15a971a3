"""
JSON shapes for API responses.

Datetimes are left as datetime objects; the app's JSON provider writes them as ISO-8601.
"""
from datetime import date, datetime

from flask.json.provider import DefaultJSONProvider

from judgeportal.models import ActivityLog, Event, EventJudge, RubricCriterion, Sponsor, Team, TeamMember, User


class IsoJSONProvider(DefaultJSONProvider):
    @staticmethod
    def default(o):
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def user_to_dict(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "name": u.name,
        "role": u.role,
        "is_active": u.is_active,
        "last_login": u.last_login,
        "created_at": u.created_at,
    }


def sponsor_to_dict(s: Sponsor) -> dict:
    if s is None:
        return None
    return {
        "id": s.id,
        "name": s.name,
        "logo_url": s.logo_url,
        "website_url": s.website_url,
        "tier": s.tier,
        "primary_color": s.primary_color,
        "secondary_color": s.secondary_color,
        "text_color": s.text_color,
    }


def event_to_dict(e: Event, counts: dict = None) -> dict:
    out = {
        "id": e.id,
        "name": e.name,
        "description": e.description,
        "event_type": e.event_type,
        "status": e.status,
        "location": e.location,
        "start_date": e.start_date,
        "end_date": e.end_date,
        "registration_deadline": e.registration_deadline,
        "max_team_size": e.max_team_size,
        "min_team_size": e.min_team_size,
        "max_teams": e.max_teams,
        "sponsor_id": e.sponsor_id,
        "sponsor": sponsor_to_dict(e.sponsor),
        "judging_phase": e.judging_phase,
        "current_active_team_id": e.current_active_team_id,
        "created_by": e.created_by,
        "created_at": e.created_at,
        "updated_at": e.updated_at,
    }
    if counts:
        out.update(counts)
    return out


def member_to_dict(m: TeamMember) -> dict:
    return {"id": m.id, "team_id": m.team_id, "name": m.name, "email": m.email}


def team_to_dict(t: Team, with_members: bool = False) -> dict:
    out = {
        "id": t.id,
        "event_id": t.event_id,
        "name": t.name,
        "project_title": t.project_title,
        "description": t.description,
        "project_url": t.project_url,
        "presentation_order": t.presentation_order,
        "status": t.status,
        "created_at": t.created_at,
        "updated_at": t.updated_at,
    }
    if with_members:
        out["members"] = [member_to_dict(m) for m in t.members]
    return out


def judge_to_dict(j: EventJudge) -> dict:
    return {
        "id": j.id,
        "event_id": j.event_id,
        "user_id": j.user_id,
        "name": j.name,
        "assigned_at": j.assigned_at,
    }


def criterion_to_dict(c: RubricCriterion) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "short_name": c.short_name,
        "description": c.description,
        "max_score": c.max_score,
        "display_order": c.display_order,
        "icon_name": c.icon_name,
        "guiding_question": c.guiding_question,
    }


def activity_to_dict(a: ActivityLog) -> dict:
    return {
        "id": a.id,
        "event_id": a.event_id,
        "user_id": a.user_id,
        "title": a.title,
        "description": a.description,
        "activity_type": a.activity_type,
        "icon_name": a.icon_name,
        "tone": a.tone,
        "created_at": a.created_at,
    }
