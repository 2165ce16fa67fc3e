"""
SQLAlchemy units of work over the Flask-scoped session.

Both flavours expose ``users`` and ``refresh_sessions`` repositories bound to
one session, so account and session rows change inside the same transaction.
"""

from __future__ import annotations

import logging
from contextlib import suppress

from sqlalchemy import event, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction, scoped_session

from jobless.core.extensions import db
from jobless.repositories import RefreshSessionRepository, UserRepository
from jobless.uow.base import UnitOfWork

logger = logging.getLogger(__name__)


class SQLAlchemyRepositoryContainer:
    """Repositories sharing one SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=session)
        self.refresh_sessions = RefreshSessionRepository(session=session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-write unit of work: commits on a clean exit, rolls back otherwise.

    A failing commit (a lost unique-email race, for instance) is rolled back
    and re-raised for the service layer to translate.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class _WriteGuard:
    """Session and connection listeners that refuse any write while installed."""

    WRITE_VERBS = (
        "insert",
        "update",
        "delete",
        "merge",
        "alter",
        "drop",
        "truncate",
        "create",
        "replace",
        "grant",
        "revoke",
    )

    def __init__(self, session: Session, conn: Connection) -> None:
        # Listeners go on the concrete per-thread Session; a scoped_session
        # proxy would forward them to its factory and reach every thread.
        self.session = session() if isinstance(session, scoped_session) else session
        self.conn = conn
        self.installed = False

        def before_flush(sess, flush_context, instances) -> None:
            if sess.new or sess.dirty or sess.deleted:
                raise RuntimeError(
                    "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
                )

        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            verb = statement.lstrip().split(None, 1)[0].lower() if statement else ""
            if verb.startswith(self.WRITE_VERBS):
                raise RuntimeError(f"Read-only UnitOfWork: SQL statement blocked: {verb.upper()}")

        self._before_flush = before_flush
        self._before_cursor_execute = before_cursor_execute

    def install(self) -> None:
        if self.installed:
            return
        event.listen(self.session, "before_flush", self._before_flush)
        event.listen(self.conn, "before_cursor_execute", self._before_cursor_execute)
        self.installed = True

    def remove(self) -> None:
        if not self.installed:
            return
        with suppress(InvalidRequestError):
            event.remove(self.session, "before_flush", self._before_flush)
        with suppress(InvalidRequestError):
            event.remove(self.conn, "before_cursor_execute", self._before_cursor_execute)
        self.installed = False


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only unit of work for lookups (profiles, session listings).

    When the session is idle the unit owns a fresh transaction, applies the
    isolation hint and ``READ ONLY`` on PostgreSQL/MySQL, and rolls back on
    exit. When a transaction is already active it attaches to it instead.
    In both cases write guards stay installed for the whole block.

    Parameters
    ----------
    isolation_level:
        Optional isolation hint such as ``"READ COMMITTED"``.
    enforce_db_readonly:
        Emit ``SET TRANSACTION READ ONLY`` where the dialect supports it.

    Notes
    -----
    Copy what you need out of loaded entities before leaving the block: the
    closing rollback expires them.
    """

    _SET_TRANSACTION_DIALECTS = ("postgresql", "mysql", "mariadb")

    def __init__(
        self,
        *,
        isolation_level: str | None = "READ COMMITTED",
        enforce_db_readonly: bool = True,
    ) -> None:
        super().__init__(session=db.session)
        self.isolation_level = isolation_level
        self.enforce_db_readonly = enforce_db_readonly
        self._txn: SessionTransaction | None = None
        self._guard: _WriteGuard | None = None

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        self._txn = self._begin_if_idle()
        conn = self.session.connection()

        self._guard = _WriteGuard(self.session, conn)
        self._guard.install()

        if self._txn is not None and conn.dialect.name in self._SET_TRANSACTION_DIALECTS:
            self._apply_transaction_characteristics()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._txn is not None:
                with suppress(SQLAlchemyError):
                    self.session.rollback()
                try:
                    self._txn.__exit__(exc_type, exc, tb)
                finally:
                    self._txn = None
        finally:
            if self._guard is not None:
                self._guard.remove()
                self._guard = None

    def commit(self) -> None:
        """:raises RuntimeError: always; this unit never writes."""
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()

    def _begin_if_idle(self) -> SessionTransaction | None:
        try:
            txn = self.session.begin()
        except InvalidRequestError:
            return None
        txn.__enter__()
        return txn

    def _apply_transaction_characteristics(self) -> None:
        try:
            if self.isolation_level:
                level = self.isolation_level.upper().strip()
                self.session.execute(text(f"SET TRANSACTION ISOLATION LEVEL {level}"))
            if self.enforce_db_readonly:
                self.session.execute(text("SET TRANSACTION READ ONLY"))
        except SQLAlchemyError as exc:
            logger.warning("SET TRANSACTION failed (%s); relying on write guards only", exc)
