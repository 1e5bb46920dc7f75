from __future__ import annotations

from functools import wraps

from flask import g, jsonify, request, session

from ..common.datetime_utils import to_iso
from ..core.enums import Role
from ..core.exceptions import (
    AlreadyValidatedError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (AlreadyValidatedError, 400),
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InvalidStateError, 500),
)


def status_for(error: DomainError) -> int:
    for kind, status in _STATUS_BY_ERROR:
        if isinstance(error, kind):
            return status
    return 500


def error_response(error: DomainError):
    body: dict = {"message": str(error)}
    if isinstance(error, AlreadyValidatedError):
        body["validatedAt"] = to_iso(error.validated_at)
    return jsonify(body), status_for(error)


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def identity_required(resolver, *roles: Role):
    """Resolve the session address to an Identity (stored on flask.g).

    With `roles`, the identity must hold one of them.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            address = session.get("address")
            if not address:
                return jsonify({"message": "No session"}), 401
            try:
                g.identity = resolver.require_role(address, *roles) if roles else resolver.resolve(address)
            except AuthenticationError as e:
                session.clear()
                return error_response(e)
            except AuthorizationError as e:
                return error_response(e)
            return view(*args, **kwargs)

        return wrapper

    return decorator
