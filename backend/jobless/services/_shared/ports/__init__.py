"""
jobless.services._shared.ports
==============================

Collection of *ports* (hexagonal interfaces) that define the contracts
for token signing and refresh-session storage.

Modules
-------
- :mod:`token_codec`:
    Defines :class:`~.TokenCodec` and the claim value objects
    (:class:`~.Identity`, :class:`~.AccessTokenClaims`,
    :class:`~.RefreshTokenClaims`, :class:`~.TokenPair`, :class:`~.TokenCheck`).

- :mod:`refresh_session_store`:
    Defines :class:`~.RefreshSessionStore`, :class:`~.RotationResult`,
    :class:`~.RefreshSessionView` and :class:`~.NewRefreshSession`, plus the
    lock-based :class:`~.InMemoryRefreshSessionStore`.

Concrete adapters (PyJWT, SQLAlchemy, Redis) live under ``jobless.infra``.
"""

from __future__ import annotations

from .refresh_session_store import (
    InMemoryRefreshSessionStore,
    NewRefreshSession,
    RefreshSessionStore,
    RefreshSessionView,
    RotationResult,
    tokens_match,
)
from .token_codec import (
    AccessTokenClaims,
    Identity,
    RefreshTokenClaims,
    TokenCheck,
    TokenCodec,
    TokenPair,
)

__all__ = [
    "AccessTokenClaims",
    "Identity",
    "InMemoryRefreshSessionStore",
    "NewRefreshSession",
    "RefreshSessionStore",
    "RefreshSessionView",
    "RefreshTokenClaims",
    "RotationResult",
    "TokenCheck",
    "TokenCodec",
    "TokenPair",
    "tokens_match",
]
