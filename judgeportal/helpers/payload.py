"""Request-body parsing shared by the route modules."""
import re
from typing import Optional

from flask import request

from judgeportal.errors import ValidationError
from judgeportal.helpers.date import parse_iso_datetime

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def get_json_body() -> dict:
    data = request.get_json(force=True, silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_int(value, field: str, required: bool = True, minimum: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required")
        return None

    # bools are ints in Python; reject them explicitly
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}")

    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"Invalid {field}")
        value = int(value)

    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}")

    if minimum is not None and parsed < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    return parsed


def parse_id(value, field: str, required: bool = True) -> Optional[int]:
    return parse_int(value, field, required=required, minimum=1)


def parse_str(value, field: str, required: bool = False, max_length: Optional[int] = None) -> Optional[str]:
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")

    clean = value.strip()
    if not clean:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if max_length is not None and len(clean) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return clean


def parse_choice(value, field: str, choices, required: bool = True) -> Optional[str]:
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required")
        return None
    allowed = [str(c) for c in choices]
    if value not in allowed:
        raise ValidationError(f"Invalid {field}", details={"allowed": allowed})
    return value


def parse_datetime(value, field: str, required: bool = False):
    try:
        dt = parse_iso_datetime(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an ISO-8601 timestamp")
    if dt is None and required:
        raise ValidationError(f"{field} is required")
    return dt


def parse_color(value, field: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str) or not HEX_COLOR_RE.match(value):
        raise ValidationError(f"{field} must be a hex colour like #500000")
    return value.upper()


def parse_email(value, field: str = "email", required: bool = True) -> Optional[str]:
    clean = parse_str(value, field, required=required, max_length=255)
    if clean is None:
        return None
    clean = clean.lower()
    if not EMAIL_RE.match(clean):
        raise ValidationError(f"Invalid {field}")
    return clean


def parse_bool_arg(raw) -> bool:
    return (raw or "").strip().lower() in ("1", "true", "yes", "y", "on")


def apply_updates(obj, data: dict, fields: dict) -> list[str]:
    """
    Copy allowed request keys onto a model instance.

    `fields` maps request key -> (column attribute, parser) where parser(value, key)
    returns the cleaned value or raises ValidationError. Keys outside the map are
    rejected rather than ignored so clients notice typos.
    """
    unknown = sorted(k for k in data if k not in fields)
    if unknown:
        raise ValidationError("Unknown or read-only fields", details={"fields": unknown})
    if not data:
        raise ValidationError("No fields to update")

    changed = []
    for key, value in data.items():
        column, parser = fields[key]
        setattr(obj, column, parser(value, key))
        changed.append(column)
    return changed
