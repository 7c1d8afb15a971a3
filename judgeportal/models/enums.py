import enum


class UserRole(enum.StrEnum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    JUDGE = "judge"


class EventType(enum.StrEnum):
    AGGIES_INVENT = "aggies-invent"
    PROBLEMS_WORTH_SOLVING = "problems-worth-solving"
    HACKATHON = "hackathon"
    DESIGN_COMPETITION = "design_competition"
    PITCH_COMPETITION = "pitch_competition"


class EventStatus(enum.StrEnum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class JudgingPhase(enum.StrEnum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    ENDED = "ended"


class TeamStatus(enum.StrEnum):
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"


class SponsorTier(enum.StrEnum):
    PLATINUM = "platinum"
    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"


class SubmissionStatus(enum.StrEnum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


def values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


def check_in(column: str, enum_cls) -> str:
    """SQL text for a CHECK constraint limiting `column` to the enum's values."""
    quoted = ", ".join(f"'{v}'" for v in values(enum_cls))
    return f"{column} IN ({quoted})"
