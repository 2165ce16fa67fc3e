"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from jobless.repositories.base import BaseRepository, parse_sort_tokens
from jobless.repositories.refresh_session import RefreshSessionRepository
from jobless.repositories.user import UserRepository

__all__ = [
    # Base
    "BaseRepository",
    "parse_sort_tokens",
    # Domain
    "RefreshSessionRepository",
    "UserRepository",
]
