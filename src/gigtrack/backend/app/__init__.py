"""Application factory for the GigTrack backend."""

import logging
import os
from importlib import util as importlib_util
from typing import Callable, cast
from warnings import warn

from flask import Flask, Response, jsonify, request
from flask.typing import ResponseReturnValue
from pydantic import ValidationError
from werkzeug.exceptions import BadRequest

from .http import LEDGER_EXTENSION, problem_response
from .models import InvalidRangeError, RecordNotFoundError, format_validation_error
from .routes import register_routes
from .routes.config import get_configuration_metadata
from .services.ledger import LedgerStore, build_default_store

CORS: Callable[..., None] | None

if importlib_util.find_spec("flask_cors") is not None:
    from flask_cors import CORS as _cors

    CORS = cast(Callable[..., None], _cors)
else:  # pragma: no cover - executed only when optional dependency missing
    CORS = None

_ALLOWED_METHODS = ["GET", "OPTIONS", "POST", "PUT", "DELETE"]

_LOGGER = logging.getLogger(__name__)


def _parse_allowed_origins(raw: str | None) -> set[str]:
    """Convert an environment variable into a normalised set of origins."""

    if not raw:
        return set()

    return {origin.strip() for origin in raw.split(",") if origin.strip()}


def _apply_default_cors_headers(
    response: ResponseReturnValue,
    allowed_origins: set[str],
) -> ResponseReturnValue:
    """Attach CORS headers for allowed origins when Flask-Cors is unavailable."""

    if not isinstance(response, Response):
        return response

    origin = request.headers.get("Origin")
    if origin and origin in allowed_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers.setdefault("Vary", "Origin")
        response.headers["Access-Control-Allow-Headers"] = request.headers.get(
            "Access-Control-Request-Headers",
            "Content-Type",
        )
        response.headers["Access-Control-Allow-Methods"] = ", ".join(_ALLOWED_METHODS)
    else:
        for header in (
            "Access-Control-Allow-Origin",
            "Access-Control-Allow-Headers",
            "Access-Control-Allow-Methods",
        ):
            response.headers.pop(header, None)
        if origin and request.method == "OPTIONS":
            response.status_code = 403

    return response


def _configure_cors(app: Flask, allowed_origins: set[str]) -> None:
    if not allowed_origins:
        warn(
            "No allowed origins configured; cross-origin requests will be rejected.",
            stacklevel=2,
        )

    if CORS is not None:
        CORS(
            app,
            resources={r"/api/*": {"origins": sorted(allowed_origins)}},
            supports_credentials=False,
            methods=_ALLOWED_METHODS,
            allow_headers=["Content-Type"],
        )
        return

    warn(
        "Flask-Cors is not installed; falling back to a minimal CORS implementation.",
        stacklevel=2,
    )

    @app.before_request
    def _handle_preflight() -> ResponseReturnValue | None:
        if request.method == "OPTIONS":
            response = app.make_default_options_response()
            return _apply_default_cors_headers(response, allowed_origins)
        return None

    @app.after_request
    def _attach_cors_headers(response: ResponseReturnValue) -> ResponseReturnValue:
        return _apply_default_cors_headers(response, allowed_origins)


def create_app(ledger: LedgerStore | None = None) -> Flask:
    """Create and configure the Flask application instance.

    ``ledger`` lets callers (tests, scripts) inject a pre-built store; by
    default one is created from ``GIGTRACK_LEDGER_DB``.
    """

    app = Flask(__name__)
    app.extensions[LEDGER_EXTENSION] = ledger or build_default_store()

    _configure_cors(app, _parse_allowed_origins(os.getenv("GIGTRACK_ALLOWED_ORIGINS")))
    register_routes(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint for infrastructure monitoring."""

        payload = {"status": "ok", **get_configuration_metadata()}
        return jsonify(payload)

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        message = error.description or "Invalid request"
        return problem_response("bad_request", status=400, message=message).to_response()

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        return problem_response(
            "validation_error", status=400, message=format_validation_error(error)
        ).to_response()

    @app.errorhandler(InvalidRangeError)
    def handle_invalid_range(error: InvalidRangeError):
        return problem_response(
            "invalid_range",
            status=422,
            message=str(error),
            start_time=error.start_time,
            end_time=error.end_time,
        ).to_response()

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(error: RecordNotFoundError):
        return problem_response("not_found", status=404, message=str(error)).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        """Gracefully surface domain validation errors to clients."""

        _LOGGER.debug("Rejected request: %s", error)
        return problem_response(
            "validation_error", status=400, message=str(error)
        ).to_response()

    return app


__all__ = ["create_app"]
