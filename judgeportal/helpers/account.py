import logging
from typing import Optional

from judgeportal.errors import AuthenticationError, NotFound, ValidationError
from judgeportal.extensions import db
from judgeportal.helpers.activity import log_activity
from judgeportal.helpers.auth import verify_password
from judgeportal.helpers.date import utcnow
from judgeportal.helpers.payload import parse_choice, parse_email, parse_str
from judgeportal.models import User
from judgeportal.models.enums import UserRole

logger = logging.getLogger(__name__)


def get_user_or_404(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def login_with_password(email, password) -> User:
    email = parse_email(email)
    if not isinstance(password, str) or not password:
        raise ValidationError("password is required")

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(user, password):
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError("Account is disabled")

    user.last_login = utcnow()
    return user


def sync_user(claims: dict, data: dict) -> tuple[User, bool]:
    """
    Upsert a user from identity-provider claims.

    Matches on the token subject first, then on email (linking the subject to an
    account an admin created ahead of the first login). New users get the judge role.
    Returns (user, created).
    """
    subject = claims.get("sub")
    email = parse_email(data.get("email") or claims.get("email"))
    name = parse_str(data.get("name") or claims.get("name"), "name", max_length=255)

    user = None
    if subject:
        user = User.query.filter_by(auth_subject=subject).first()
    if user is None:
        user = User.query.filter_by(email=email).first()
        if user is not None and subject and not user.auth_subject:
            user.auth_subject = subject

    created = False
    if user is None:
        user = User(
            email=email,
            name=name or email.split("@")[0],
            auth_subject=subject,
            role=UserRole.JUDGE.value,
            is_active=True,
        )
        db.session.add(user)
        created = True
        logger.info("Created user %s from identity provider", email)
    elif name:
        user.name = name

    if not user.is_active:
        raise AuthenticationError("Account is disabled")

    user.last_login = utcnow()
    db.session.flush()
    return user, created


def set_user_role(user: User, role, changed_by: Optional[int] = None) -> User:
    role = parse_choice(role, "role", UserRole)
    previous = user.role
    user.role = role

    log_activity(
        "User Role Changed",
        user_id=changed_by,
        description=f"{user.email}: {previous} -> {role}",
        activity_type="user_role",
        icon_name="Shield",
    )
    return user


def set_user_active(user: User, active, changed_by: Optional[int] = None) -> User:
    if not isinstance(active, bool):
        raise ValidationError("isActive must be true or false")
    if changed_by is not None and user.id == changed_by and not active:
        raise ValidationError("You cannot deactivate your own account")

    user.is_active = active
    log_activity(
        "User Activated" if active else "User Deactivated",
        user_id=changed_by,
        description=user.email,
        activity_type="user_active",
        icon_name="UserCheck" if active else "UserX",
        tone="primary" if active else "warning",
    )
    return user
