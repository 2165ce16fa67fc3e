"""Token codec and refresh session store wiring."""

from __future__ import annotations

from flask import Flask, current_app

from jobless.core.config import parse_duration
from jobless.core.extensions import get_redis
from jobless.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from jobless.infra.redis.redis_refresh_session_store import RedisRefreshSessionStore
from jobless.infra.sqlalchemy.refresh_session_store import SQLAlchemyRefreshSessionStore
from jobless.services._shared.ports import RefreshSessionStore, TokenCodec
from jobless.services.auth.service import AuthService

SESSION_STORES = ("sql", "redis")


def build_token_codec(config) -> PyJWTTokenCodec:
    """Create the PyJWT codec from ``JWT_*`` settings.

    :raises ValueError: If the secrets are missing or equal, or a TTL is invalid.
    """
    return PyJWTTokenCodec(
        access_secret=config["JWT_SECRET"],
        refresh_secret=config["JWT_REFRESH_SECRET"],
        access_ttl=parse_duration(config.get("JWT_EXPIRES_IN", "15m")),
        refresh_ttl=parse_duration(config.get("JWT_REFRESH_EXPIRES_IN", "7d")),
        algorithm=config.get("JWT_ALGORITHM", "HS256"),
    )


def build_session_store(config) -> RefreshSessionStore:
    """Pick the refresh session backend named by ``SESSION_STORE``."""
    kind = str(config.get("SESSION_STORE", "sql")).strip().lower()
    if kind == "sql":
        return SQLAlchemyRefreshSessionStore()
    if kind == "redis":
        return RedisRefreshSessionStore(get_redis())
    raise ValueError(f"SESSION_STORE must be one of {SESSION_STORES}, got {kind!r}")


def init_app(app: Flask) -> None:
    """Build the codec, the session store and the :class:`AuthService`.

    Objects are stored under ``app.extensions`` (``token_codec`` and
    ``auth_service``); configuration errors surface at startup.
    """
    codec = build_token_codec(app.config)
    store = build_session_store(app.config)
    app.extensions["token_codec"] = codec
    app.extensions["auth_service"] = AuthService(token_codec=codec, session_store=store)


def get_token_codec() -> TokenCodec:
    return current_app.extensions["token_codec"]


def get_auth_service() -> AuthService:
    return current_app.extensions["auth_service"]
