"""
Pluggable authentication.

One AuthProvider is chosen when the app is created and stored on
``app.extensions["auth_provider"]``. Routes never look at environment
variables to decide how to authenticate; they only use the decorators below.
"""
import logging
from datetime import timedelta
from functools import wraps
from typing import Optional

import requests
from flask import current_app, g, request
from jose import JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from judgeportal.errors import AuthenticationError, PermissionDenied
from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow
from judgeportal.models import User

logger = logging.getLogger(__name__)


def bearer_token(req) -> Optional[str]:
    header = req.headers.get("Authorization", "")
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return None
    return parts[1]


class AuthProvider:
    """Turns an incoming request into a User (or None when no credentials were sent)."""

    name = "base"

    def verify_token(self, token: str) -> dict:
        raise NotImplementedError

    def find_user(self, claims: dict) -> Optional[User]:
        raise NotImplementedError

    def claims_for(self, req) -> dict:
        """Verified token claims; the user they name may not exist yet."""
        token = bearer_token(req)
        if not token:
            raise AuthenticationError("Authentication required")
        return self.verify_token(token)

    def authenticate(self, req) -> Optional[User]:
        token = bearer_token(req)
        if not token:
            return None

        claims = self.verify_token(token)
        user = self.find_user(claims)
        if user is None:
            raise AuthenticationError("Unknown user")
        if not user.is_active:
            raise AuthenticationError("Account is disabled")
        return user


class LocalJwtProvider(AuthProvider):
    """HS256 tokens issued by this API (POST /auth/token)."""

    name = "local-jwt"
    algorithm = "HS256"

    def __init__(self, secret: str, issuer: str, audience: str, ttl_hours: int = 8):
        if not secret:
            raise ValueError("JWT secret required")
        self.secret = secret
        self.issuer = issuer
        self.audience = audience
        self.ttl = timedelta(hours=ttl_hours)

    def issue_token(self, user: User) -> str:
        now = utcnow()
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> dict:
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except JWTError as e:
            raise AuthenticationError("Invalid token", details=str(e))

    def find_user(self, claims: dict) -> Optional[User]:
        try:
            user_id = int(claims.get("sub"))
        except (TypeError, ValueError):
            return None
        return db.session.get(User, user_id)


class Auth0Provider(AuthProvider):
    """RS256 access tokens from an Auth0 tenant, checked against its JWKS."""

    name = "auth0"
    algorithm = "RS256"

    def __init__(self, domain: str, audience: str, timeout: float = 5.0):
        if not domain or not audience:
            raise ValueError("AUTH0_DOMAIN and AUTH0_AUDIENCE are required for auth0")
        self.domain = domain
        self.audience = audience
        self.issuer = f"https://{domain}/"
        self.timeout = timeout
        self._jwks = None

    def jwks(self) -> dict:
        if self._jwks is None:
            resp = requests.get(f"https://{self.domain}/.well-known/jwks.json", timeout=self.timeout)
            resp.raise_for_status()
            self._jwks = resp.json()
        return self._jwks

    def verify_token(self, token: str) -> dict:
        try:
            keys = self.jwks()
        except requests.RequestException as e:
            logger.error("Could not fetch JWKS from %s: %s", self.domain, e)
            raise AuthenticationError("Identity provider unavailable")

        try:
            return jwt.decode(
                token,
                keys,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except JWTError as e:
            raise AuthenticationError("Invalid token", details=str(e))

    def find_user(self, claims: dict) -> Optional[User]:
        subject = claims.get("sub")
        if not subject:
            return None
        return User.query.filter_by(auth_subject=subject).first()


class FixedUserProvider(AuthProvider):
    """Always authenticates as one user. For tests and local demos only."""

    name = "fixed"

    def __init__(self, user_id: int):
        self.user_id = user_id

    def find_user(self, claims: dict) -> Optional[User]:
        return db.session.get(User, self.user_id)

    def claims_for(self, req) -> dict:
        user = self.find_user({})
        if user is None:
            raise AuthenticationError("Unknown user")
        return {"sub": user.auth_subject, "email": user.email, "name": user.name}

    def authenticate(self, req) -> Optional[User]:
        return self.find_user({})


def build_auth_provider(config) -> AuthProvider:
    kind = (config.get("AUTH_PROVIDER") or "local-jwt").strip().lower()

    if kind == "auth0":
        return Auth0Provider(config.get("AUTH0_DOMAIN"), config.get("AUTH0_AUDIENCE"))
    if kind == "local-jwt":
        return LocalJwtProvider(
            config.get("JWT_SECRET"),
            config.get("JWT_ISSUER"),
            config.get("JWT_AUDIENCE"),
            config.get("JWT_TTL_HOURS", 8),
        )

    raise ValueError(f"Unknown AUTH_PROVIDER: {kind}")


def get_auth_provider() -> AuthProvider:
    return current_app.extensions["auth_provider"]


def current_user() -> Optional[User]:
    """Authenticate lazily, once per request."""
    if "current_user" not in g:
        g.current_user = get_auth_provider().authenticate(request)
    return g.current_user


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_user() is None:
            raise AuthenticationError("Authentication required")
        return view(*args, **kwargs)
    return wrapped


def require_role(*roles):
    """
    Decorator: caller must be authenticated and hold one of `roles`.
    """
    allowed = {str(r) for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            user = current_user()
            if user is None:
                raise AuthenticationError("Authentication required")
            if user.role not in allowed:
                raise PermissionDenied("Insufficient permissions")
            return view(*args, **kwargs)
        return wrapped
    return decorator


def has_role(user: Optional[User], *roles) -> bool:
    return bool(user) and user.role in {str(r) for r in roles}


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(user: User, password: str) -> bool:
    if not user or not user.password_hash:
        return False
    return check_password_hash(user.password_hash, password)
