from __future__ import annotations

import logging
from functools import wraps
from typing import Any

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..access.model import Actor
from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ACTOR_ID_HEADER = "X-Actor-Id"
ACTOR_ROLE_HEADER = "X-Actor-Role"

# Most specific first: InvalidTransitionError must win over the DomainError fallback.
ERROR_STATUS: list[tuple[type[DomainError], str, int]] = [
    (NotFoundError, "not_found", 404),
    (AuthorizationError, "forbidden", 403),
    (InvalidTransitionError, "invalid_transition", 409),
    (ConflictError, "conflict", 409),
    (ValidationError, "validation_error", 400),
]


def ok(data: Any = None, status: int = 200):
    return jsonify({"success": True, "data": data}), status


def fail(error: str, message: str, status: int):
    return jsonify({"success": False, "error": error, "message": message}), status


def json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def actor_required(view):
    """Resolve the caller from the identity proxy headers into ``g.actor``."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        actor_id = (request.headers.get(ACTOR_ID_HEADER) or "").strip()
        role_raw = (request.headers.get(ACTOR_ROLE_HEADER) or "").strip().lower()
        if not actor_id or not role_raw:
            return fail("unauthenticated", "Missing caller identity", 401)
        try:
            role = Role(role_raw)
        except ValueError:
            return fail("unauthenticated", f"Unknown role '{role_raw}'", 401)
        g.actor = Actor(actor_id=actor_id, role=role)
        return view(*args, **kwargs)

    return wrapper


def current_actor() -> Actor:
    return g.actor


def query_flag(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in {"1", "true", "yes"}


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        for exc_type, error, status in ERROR_STATUS:
            if isinstance(e, exc_type):
                return fail(error, str(e), status)
        return fail("domain_error", str(e), 400)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return fail(e.name.lower().replace(" ", "_"), e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return fail("internal_error", "Internal server error", 500)
