"""Refresh session repository.

Every mutating helper here is a single set-based statement so that callers
can reason about atomicity through the returned row counts.
"""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import CursorResult, delete, select

from jobless.models.refresh_session import RefreshSession
from jobless.repositories.base import BaseRepository


class RefreshSessionRepository(BaseRepository[RefreshSession]):
    """Persistence-only repository for :class:`RefreshSession`."""

    model = RefreshSession

    def _sortable_fields(self):
        return {
            "created_at": RefreshSession.created_at,
            "expires_at": RefreshSession.expires_at,
        }

    def _filterable_fields(self):
        return {"user_id": RefreshSession.user_id}

    # ----------------------------- Queries -----------------------------

    def list_for_user(self, user_id: int) -> list[RefreshSession]:
        """Return every session row of ``user_id``, newest first."""
        return self.list(filters={"user_id": user_id}, sort=["-created_at"])

    # ----------------------------- Deletes -----------------------------

    def delete_matching(self, session_id: str, token: str) -> int:
        """
        Delete the row only when both its id and its stored token match.

        This is the compare-and-delete step of refresh rotation: of two
        concurrent callers presenting the same token, only one observes a
        row count of ``1``.

        :param session_id: Session identifier (``tokenId`` claim).
        :param token: Presented refresh token string.
        :returns: Number of deleted rows (``0`` or ``1``).
        """
        stmt = delete(RefreshSession).where(
            RefreshSession.id == session_id,
            RefreshSession.token == token,
        )
        return self._rowcount(stmt)

    def delete_by_id(self, session_id: str, *, user_id: int | None = None) -> int:
        """Delete one session, optionally only when owned by ``user_id``."""
        stmt = delete(RefreshSession).where(RefreshSession.id == session_id)
        if user_id is not None:
            stmt = stmt.where(RefreshSession.user_id == user_id)
        return self._rowcount(stmt)

    def delete_for_user(self, user_id: int) -> int:
        """Delete every session of ``user_id``."""
        stmt = delete(RefreshSession).where(RefreshSession.user_id == user_id)
        return self._rowcount(stmt)

    def purge_expired(self, now: datetime) -> int:
        """Delete sessions whose ``expires_at`` is at or before ``now``."""
        stmt = delete(RefreshSession).where(RefreshSession.expires_at <= now)
        return self._rowcount(stmt)

    def _rowcount(self, stmt) -> int:
        result = cast(
            CursorResult,
            self.session.execute(stmt, execution_options={"synchronize_session": False}),
        )
        return int(result.rowcount or 0)
