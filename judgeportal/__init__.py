import logging

import click
from flask import Flask, g, request

from .config import Config
from .errors import register_error_handlers
from .extensions import db
from .helpers.auth import build_auth_provider
from .helpers.serialize import IsoJSONProvider
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app(config_object=Config, auth_provider=None):
    """
    Build the API.

    `auth_provider` overrides the provider normally built from AUTH_PROVIDER
    (tests pass a FixedUserProvider or a LocalJwtProvider of their own).
    """
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.json = IsoJSONProvider(app)

    configure_logging(app)
    db.init_app(app)

    app.extensions["auth_provider"] = auth_provider or build_auth_provider(app.config)

    register_error_handlers(app)

    # g lives on the app context, which can span several requests
    @app.before_request
    def forget_previous_user():
        g.pop("current_user", None)

    from .routes import register_blueprints
    register_blueprints(app)

    _register_cors(app)
    _register_cli(app)

    logger.info(
        "App created (env=%s, auth=%s)",
        app.config.get("APP_ENV"),
        app.extensions["auth_provider"].name,
    )
    return app


def _register_cors(app):
    allowed = app.config.get("CORS_ORIGINS") or []

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if not origin or not allowed:
            return response

        if "*" in allowed:
            response.headers["Access-Control-Allow-Origin"] = "*"
        elif origin in allowed:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
        else:
            return response

        response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
        return response


def _register_cli(app):
    from .helpers.schema import create_schema, reset_schema, seed_demo_data

    @app.cli.command("init-db")
    @click.option("--drop", is_flag=True, help="Drop all tables first.")
    def init_db_command(drop):
        """Create tables and the default rubric."""
        added = reset_schema() if drop else create_schema()
        click.echo(f"Schema ready ({added} rubric criteria added).")

    @app.cli.command("seed-data")
    def seed_data_command():
        """Load demo users, events and scores."""
        result = seed_demo_data()
        if result["seeded"]:
            click.echo(f"Seeded: {result['summary']}")
        else:
            click.echo(result["reason"])
