# jobless/infra/sqlalchemy/refresh_session_store.py
from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from jobless.models.base import as_utc
from jobless.models.refresh_session import RefreshSession
from jobless.services._shared.ports import (
    NewRefreshSession,
    RefreshSessionStore,
    RefreshSessionView,
    RotationResult,
    tokens_match,
)
from jobless.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork


class SQLAlchemyRefreshSessionStore(RefreshSessionStore):
    """
    Relational refresh session store (``refresh_sessions`` table).

    Every public method runs in its own read-write unit of work. Rotation
    first reads the row to report ``NOT_FOUND``, ``TOKEN_MISMATCH`` or
    ``EXPIRED``; that read is advisory. A conditional
    ``DELETE ... WHERE id = :id AND token = :token`` in the same unit then
    decides the race, and only the caller whose delete removed the row
    inserts the replacement.

    :param uow_factory: Builds the unit of work; defaults to the Flask-scoped one.
    """

    def __init__(self, uow_factory: Callable[[], SQLAlchemyUnitOfWork] | None = None) -> None:
        self._uow_factory = uow_factory or SQLAlchemyUnitOfWork

    @staticmethod
    def _view(row: RefreshSession) -> RefreshSessionView:
        return RefreshSessionView(
            session_id=row.id,
            user_id=row.user_id,
            token=row.token,
            expires_at=as_utc(row.expires_at),
            created_at=as_utc(row.created_at),
        )

    @staticmethod
    def _row(session: NewRefreshSession) -> RefreshSession:
        return RefreshSession(
            id=session.session_id,
            user_id=session.user_id,
            token=session.token,
            expires_at=session.expires_at,
        )

    # -------------------- API ------------------------

    def create(self, session: NewRefreshSession) -> None:
        with self._uow_factory() as uow:
            uow.refresh_sessions.add(self._row(session))

    def get(self, session_id: str) -> RefreshSessionView | None:
        with self._uow_factory() as uow:
            row = uow.refresh_sessions.get(session_id)
            return self._view(row) if row is not None else None

    def rotate(
        self,
        *,
        old_session_id: str,
        presented_token: str,
        replacement: NewRefreshSession,
        now: datetime,
    ) -> RotationResult:
        with self._uow_factory() as uow:
            repo = uow.refresh_sessions
            row = repo.get(old_session_id)
            if row is None:
                return RotationResult.NOT_FOUND
            if not tokens_match(row.token, presented_token):
                return RotationResult.TOKEN_MISMATCH
            if as_utc(row.expires_at) <= now:
                repo.delete_matching(old_session_id, presented_token)
                return RotationResult.EXPIRED

            # The read above is advisory; this conditional delete decides the race.
            if repo.delete_matching(old_session_id, presented_token) != 1:
                return RotationResult.NOT_FOUND
            repo.add(self._row(replacement))
            return RotationResult.OK

    def delete(self, session_id: str, *, user_id: int | None = None) -> bool:
        with self._uow_factory() as uow:
            return uow.refresh_sessions.delete_by_id(session_id, user_id=user_id) == 1

    def delete_all_for_user(self, user_id: int) -> int:
        with self._uow_factory() as uow:
            return uow.refresh_sessions.delete_for_user(user_id)

    def list_user_sessions(self, user_id: int) -> list[RefreshSessionView]:
        with self._uow_factory() as uow:
            return [self._view(row) for row in uow.refresh_sessions.list_for_user(user_id)]

    def purge_expired(self, now: datetime) -> int:
        with self._uow_factory() as uow:
            return uow.refresh_sessions.purge_expired(now)
