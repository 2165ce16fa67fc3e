"""Shared API helpers: the bearer-token gate, JSON responses, timing."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request

from jobless.core.errors import Unauthorized
from jobless.core.security import get_auth_service, get_token_codec
from jobless.services._shared.errors import InvalidTokenError
from jobless.services._shared.ports import Identity, TokenCodec

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True, slots=True)
class GateResult:
    """Outcome of inspecting a request's ``Authorization`` header.

    ``identity`` is set when a valid access token was presented; ``error`` is
    set when a bearer token was present but did not verify. Both are ``None``
    when no (well-formed) bearer header was sent.
    """

    identity: Identity | None = None
    error: InvalidTokenError | None = None


def extract_bearer_token(header: str | None) -> str | None:
    """Return the token of a ``Bearer <token>`` header, or ``None``."""
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


def authenticate_request(header: str | None, codec: TokenCodec) -> GateResult:
    """Derive the caller's identity from an ``Authorization`` header value."""
    token = extract_bearer_token(header)
    if token is None:
        return GateResult()
    check = codec.inspect_access_token(token)
    if check.claims is None:
        return GateResult(error=check.error)
    return GateResult(identity=check.claims.identity)


def _gate() -> GateResult:
    return authenticate_request(request.headers.get("Authorization"), get_token_codec())


def require_auth(func: F) -> F:
    """Reject the request with 401 unless it carries a valid access token.

    The view receives the caller as the ``identity`` keyword argument.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        result = _gate()
        if result.identity is None:
            message = "Invalid or expired token" if result.error else "Access token required"
            raise Unauthorized(message)
        return func(*args, identity=result.identity, **kwargs)

    return wrapper  # type: ignore[return-value]


def optional_auth(func: F) -> F:
    """Pass ``identity`` (or ``None``) to the view without ever rejecting."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        result = _gate()
        return func(*args, identity=result.identity, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


__all__ = [
    "GateResult",
    "authenticate_request",
    "extract_bearer_token",
    "get_auth_service",
    "json_response",
    "optional_auth",
    "require_auth",
    "timing",
]
