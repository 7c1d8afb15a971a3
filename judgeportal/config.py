import os

# A judge counts as online while their open session saw activity this recently.
JUDGE_ONLINE_WINDOW_SECONDS = 120

# Every rubric criterion is scored out of at most this many points.
MAX_CRITERION_SCORE = 25

ACTIVITY_FEED_LIMIT = 50
ACTIVITY_FEED_MAX = 200


def _database_url() -> str:
    raw_db_url = os.getenv("DATABASE_URL")

    if raw_db_url:
        if raw_db_url.startswith("postgres://"):
            raw_db_url = raw_db_url.replace("postgres://", "postgresql://", 1)
        return raw_db_url

    return "sqlite:///judging.db"


def _engine_options(url: str) -> dict:
    """Bounded pool for server databases; SQLite uses its own pool class."""
    if url.startswith("sqlite"):
        return {}

    return {
        "pool_size": int(os.getenv("DB_POOL_SIZE", "10")),
        "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", "10")),
        "pool_pre_ping": True,
    }


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


class Config:
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options(SQLALCHEMY_DATABASE_URI)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me-dev-secret")

    APP_ENV = os.getenv("APP_ENV", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # "local-jwt" or "auth0"
    AUTH_PROVIDER = os.getenv("AUTH_PROVIDER", "local-jwt")
    JWT_SECRET = os.getenv("JWT_SECRET", "change-me-dev-jwt-secret")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "judge-portal")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "judge-portal-api")
    JWT_TTL_HOURS = int(os.getenv("JWT_TTL_HOURS", "8"))
    AUTH0_DOMAIN = os.getenv("AUTH0_DOMAIN")
    AUTH0_AUDIENCE = os.getenv("AUTH0_AUDIENCE")

    # Permissive by default in development only
    CORS_ORIGINS = _split_csv(
        os.getenv("CORS_ORIGINS", "*" if APP_ENV == "development" else "")
    )


class TestConfig(Config):
    TESTING = True
    APP_ENV = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    AUTH_PROVIDER = "local-jwt"
    JWT_SECRET = "test-secret"
    CORS_ORIGINS = ["http://localhost:3000"]
