from __future__ import annotations

import hmac
import secrets
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum, auto
from typing import Protocol


class RotationResult(Enum):
    """Outcome of an atomic refresh rotation attempt."""

    OK = auto()
    NOT_FOUND = auto()
    TOKEN_MISMATCH = auto()
    EXPIRED = auto()


@dataclass(frozen=True)
class RefreshSessionView:
    """
    Read-model for a refresh session.

    :ivar session_id: Session identifier (``tokenId`` claim).
    :ivar user_id: Owner user id.
    :ivar token: Serialized refresh token bound to this session.
    :ivar expires_at: Absolute expiration (UTC).
    :ivar created_at: Creation time (UTC).
    """

    session_id: str
    user_id: int
    token: str
    expires_at: datetime
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class NewRefreshSession:
    """Row to insert, either on login/register or as a rotation replacement."""

    session_id: str
    user_id: int
    token: str
    expires_at: datetime


class RefreshSessionStore(Protocol):
    """
    Stateful store for refresh sessions.

    ``rotate`` MUST be atomic: of two callers presenting the same token for
    the same session, exactly one gets ``RotationResult.OK``.
    """

    def new_session_id(self) -> str:
        """Generate a new random session identifier (32 random bytes, hex)."""
        return secrets.token_hex(32)

    def create(self, session: NewRefreshSession) -> None:
        """Persist a brand-new refresh session."""

    def get(self, session_id: str) -> RefreshSessionView | None:
        """Fetch a single session snapshot (if present)."""

    def rotate(
        self,
        *,
        old_session_id: str,
        presented_token: str,
        replacement: NewRefreshSession,
        now: datetime,
    ) -> RotationResult:
        """
        Atomically consume ``old_session_id`` and insert ``replacement``.

        An expired session is deleted and reported as ``EXPIRED``.

        :returns: ``RotationResult.OK`` on success, otherwise the specific failure.
        """

    def delete(self, session_id: str, *, user_id: int | None = None) -> bool:
        """Delete one session (only if owned by ``user_id`` when given)."""

    def delete_all_for_user(self, user_id: int) -> int:
        """Delete every session of ``user_id``. :returns: rows removed."""

    def list_user_sessions(self, user_id: int) -> list[RefreshSessionView]:
        """List a user's sessions, newest first."""

    def purge_expired(self, now: datetime) -> int:
        """Delete sessions expired at ``now``. :returns: rows removed."""


def tokens_match(stored: str, presented: str) -> bool:
    """Constant-time comparison of a stored and a presented token string."""
    return hmac.compare_digest(stored.encode("utf-8"), presented.encode("utf-8"))


class InMemoryRefreshSessionStore(RefreshSessionStore):
    """
    In-memory refresh session store with atomic rotation behavior.

    .. note::
       A single lock serializes every operation; used by unit tests and as a
       reference for the durable adapters.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, RefreshSessionView] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    def _insert(self, session: NewRefreshSession) -> None:
        self._by_id[session.session_id] = RefreshSessionView(
            session_id=session.session_id,
            user_id=session.user_id,
            token=session.token,
            expires_at=session.expires_at,
            created_at=self._now(),
        )

    # -------------------------- API ----------------------------

    def create(self, session: NewRefreshSession) -> None:
        with self._lock:
            self._insert(session)

    def get(self, session_id: str) -> RefreshSessionView | None:
        with self._lock:
            return self._by_id.get(session_id)

    def rotate(
        self,
        *,
        old_session_id: str,
        presented_token: str,
        replacement: NewRefreshSession,
        now: datetime,
    ) -> RotationResult:
        with self._lock:
            current = self._by_id.get(old_session_id)
            if current is None:
                return RotationResult.NOT_FOUND
            if not tokens_match(current.token, presented_token):
                return RotationResult.TOKEN_MISMATCH
            if current.is_expired(now):
                del self._by_id[old_session_id]
                return RotationResult.EXPIRED

            del self._by_id[old_session_id]
            self._insert(replacement)
            return RotationResult.OK

    def delete(self, session_id: str, *, user_id: int | None = None) -> bool:
        with self._lock:
            current = self._by_id.get(session_id)
            if current is None:
                return False
            if user_id is not None and current.user_id != user_id:
                return False
            del self._by_id[session_id]
            return True

    def delete_all_for_user(self, user_id: int) -> int:
        with self._lock:
            doomed = [sid for sid, s in self._by_id.items() if s.user_id == user_id]
            for sid in doomed:
                del self._by_id[sid]
            return len(doomed)

    def list_user_sessions(self, user_id: int) -> list[RefreshSessionView]:
        with self._lock:
            sessions = [s for s in self._by_id.values() if s.user_id == user_id]
        return sorted(sessions, key=lambda s: s.created_at, reverse=True)

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            doomed = [sid for sid, s in self._by_id.items() if s.is_expired(now)]
            for sid in doomed:
                del self._by_id[sid]
            return len(doomed)
