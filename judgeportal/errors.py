"""
API error types and the Flask handlers that turn them into JSON.

Every error body has the shape ``{"error": str, "details"?: any}``.
Diagnostic details for unexpected failures are only included outside production.
"""
import logging

from flask import jsonify, current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from judgeportal.extensions import db

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None, details=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(ApiError):
    status_code = 400


class AuthenticationError(ApiError):
    status_code = 401


class PermissionDenied(ApiError):
    status_code = 403


class ScoringClosed(PermissionDenied):
    pass


class NotFound(ApiError):
    status_code = 404


class ConflictError(ApiError):
    status_code = 409


def _is_production() -> bool:
    return current_app.config.get("APP_ENV") == "production"


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        db.session.rollback()
        body = err.to_dict()
        if isinstance(err, AuthenticationError):
            logger.warning("Authentication failed: %s (%s)", err.message, err.details)
            # token library messages stay in the log
            if _is_production():
                body.pop("details", None)
        return jsonify(body), err.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        db.session.rollback()
        logger.warning("Integrity error: %s", err.orig)
        body = {"error": "Conflicts with existing data"}
        if not _is_production():
            body["details"] = str(err.orig)
        return jsonify(body), 409

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        return jsonify({"error": err.description or err.name}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        db.session.rollback()
        logger.exception("Unhandled error")
        body = {"error": "Internal server error"}
        if not _is_production():
            body["details"] = str(err)
        return jsonify(body), 500
