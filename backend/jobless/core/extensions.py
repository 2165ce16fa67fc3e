"""Flask extension singletons for the auth backend.

``db`` and ``migrate`` are always bound. Redis is only connected when the
refresh session store is configured as ``SESSION_STORE=redis``.
"""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

# Constraint names stay stable across SQLite and PostgreSQL migrations
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

db: SQLAlchemy = SQLAlchemy(
    session_options={"autoflush": False},
    metadata=MetaData(naming_convention=NAMING_CONVENTION),
)
migrate = Migrate(render_as_batch=True)
redis_client: redis.Redis | None = None


def init_app(app: Flask) -> None:
    """Bind the database, register migrations and connect the session cache.

    The :mod:`jobless.models` package is imported here so ``users`` and
    ``refresh_sessions`` are on the metadata before Alembic inspects it.
    """
    db.init_app(app)
    from jobless import models as _models  # noqa: F401

    migrate.init_app(app, db)
    _init_redis(app)


def _init_redis(app: Flask) -> None:
    global redis_client

    wants_redis = str(app.config.get("SESSION_STORE", "sql")).strip().lower() == "redis"
    redis_url = app.config.get("REDIS_URL")
    if not wants_redis:
        redis_client = None
        app.extensions.pop("redis_client", None)
        return
    if not redis_url:
        raise RuntimeError("SESSION_STORE=redis requires REDIS_URL")

    client = redis.Redis.from_url(redis_url)
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Refresh session cache unreachable at {redis_url!r}") from exc
    redis_client = client
    app.extensions["redis_client"] = client


def get_redis() -> redis.Redis:
    """Return the Redis client backing the refresh session store."""
    if redis_client is None:
        raise RuntimeError("Redis session store is not configured (SESSION_STORE=redis).")
    return redis_client
