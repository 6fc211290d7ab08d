"""
app/__init__.py — Flask application factory for the TripMate API.

create_app(config_name) builds a fresh app per call, so tests get isolated
instances and Alembic can import the models without starting a server.
The factory wires configuration, logging, extensions, the /api/v1
blueprints, error handlers, dev CORS and request logging.
"""

from __future__ import annotations

import logging
import traceback
from datetime import date, datetime

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from flask.logging import default_handler
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from tripmate.config import config_by_name, validate_production_config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class ISODateJSONProvider(DefaultJSONProvider):
    """Writes date/datetime as ISO-8601 ("2026-04-01") instead of RFC 822."""

    def default(self, o):
        if isinstance(o, (date, datetime)):
            return o.isoformat()
        return super().default(o)


def create_app(config_name: str = "development") -> Flask:
    """
    Args:
        config_name: "development", "testing" or "production". Unknown names
                     fall back to development.
    """
    app = Flask(__name__)
    app.json = ISODateJSONProvider(app)

    app.config.from_object(config_by_name.get(config_name, config_by_name["development"]))
    app.json.sort_keys = app.config["JSON_SORT_KEYS"]
    if config_name == "production":
        validate_production_config(app)

    _configure_logging(app)

    from tripmate.app.extensions import db, ma
    db.init_app(app)
    ma.init_app(app)

    # Populates db.metadata for create_all() and Alembic.
    from tripmate.app.models import expense, member, split, trip  # noqa: F401

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)

    from tripmate.app.middleware.request_logging import register_request_logging
    register_request_logging(app)

    app.logger.debug("TripMate app created with %s config", config_name)
    return app


def _configure_logging(app: Flask) -> None:
    # app.logger is "tripmate.app"; service loggers under it propagate here.
    default_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    app.logger.setLevel(app.config["LOG_LEVEL"].upper())


def _register_blueprints(app: Flask) -> None:
    from tripmate.app.routes.expenses import expenses_bp
    from tripmate.app.routes.settlements import settlements_bp
    from tripmate.app.routes.trips import trips_bp

    app.register_blueprint(trips_bp, url_prefix="/api/v1/trips")
    app.register_blueprint(settlements_bp, url_prefix="/api/v1/trips")
    # Owns both /trips/<id>/expenses and /expenses/<id>.
    app.register_blueprint(expenses_bp, url_prefix="/api/v1")


# ── Error handling ─────────────────────────────────────────────────────────

def _first_validation_error(messages) -> tuple[str | None, str]:
    """
    Picks the first (field, message) out of a marshmallow messages structure.

    List fields nest their errors by index, e.g.
    {"split_member_ids": {0: ["Shorter than minimum length 1."]}}, so dicts
    are followed down to the first list of messages.
    """
    if isinstance(messages, list):
        return None, messages[0] if messages else "Invalid input."
    if not isinstance(messages, dict) or not messages:
        return None, "Invalid input."

    field, errors = next(iter(messages.items()))
    while isinstance(errors, dict) and errors:
        errors = next(iter(errors.values()))
    message = errors[0] if isinstance(errors, list) and errors else str(errors)
    return (None if field == "_schema" else field), message


def _register_error_handlers(app: Flask) -> None:
    """
    AppError        → its own code and status
    ValidationError → 400; the schema's code if it raised one, else
                      MISSING_FIELD or INVALID_FIELD
    HTTPException   → its status, as NOT_FOUND / METHOD_NOT_ALLOWED / BAD_REQUEST
    Exception       → 500 INTERNAL_ERROR; the traceback is logged, never returned
    """
    from tripmate.app.errors import DEFAULT_MESSAGES, AppError, ErrorCode, error_envelope

    registered_codes = set(vars(ErrorCode).values())

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        if error.http_status >= 500:
            app.logger.error("AppError %s: %s", error.code, error.message)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        field, message = _first_validation_error(error.messages)

        if message in registered_codes:
            code, message = message, DEFAULT_MESSAGES.get(message, "Invalid input.")
        elif message.startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
        else:
            code = ErrorCode.INVALID_FIELD

        return jsonify(error_envelope(code, message, field)), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        status = error.code or 500
        code = {
            404: ErrorCode.NOT_FOUND,
            405: ErrorCode.METHOD_NOT_ALLOWED,
        }.get(status, ErrorCode.BAD_REQUEST if status < 500 else ErrorCode.INTERNAL_ERROR)
        return jsonify(error_envelope(code, error.description or error.name)), status

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        app.logger.error("Unhandled exception: %s\n%s", error, traceback.format_exc())
        return jsonify(error_envelope(
            ErrorCode.INTERNAL_ERROR,
            "An unexpected error occurred. Please try again later.",
        )), 500


def _register_cors(app: Flask) -> None:
    """Open CORS in DEBUG/TESTING so a web client on another local port can call the API."""

    if not (app.config.get("DEBUG") or app.config.get("TESTING")):
        return

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = request.headers.get("Origin") or "*"
        response.headers["Vary"] = "Origin"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response
