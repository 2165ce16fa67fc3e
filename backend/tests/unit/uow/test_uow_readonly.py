"""Tests for the read-only unit of work's guards."""

import pytest
from sqlalchemy import event

from jobless.core.extensions import db as _db
from jobless.uow import SQLAlchemyReadOnlyUnitOfWork as ROuow
from jobless.uow.sqlalchemy_uow import _WriteGuard
from tests.factories.user import UserFactory


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_commit_is_disallowed(self, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_blocks_orm_flush_writes(self, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(UserFactory.build())
            uow.session.flush()

    def test_allows_reads(self, session):
        user = UserFactory(email="reader@example.com")

        with ROuow() as uow:
            found = uow.users.get_by_email("reader@example.com")
            assert found is not None
            assert found.id == user.id


class TestWriteGuard:
    def test_binds_to_the_concrete_session(self, session, connection):
        guard = _WriteGuard(_db.session, connection)
        assert guard.session is _db.session()

    def test_guards_are_independent(self, session, connection):
        first = session.session_factory()
        second = session.session_factory()
        guard_a = _WriteGuard(first, connection)
        guard_b = _WriteGuard(second, connection)
        try:
            guard_a.install()
            guard_b.install()
            guard_a.remove()

            assert not event.contains(first, "before_flush", guard_a._before_flush)
            assert event.contains(second, "before_flush", guard_b._before_flush)
            assert not event.contains(
                session.session_factory, "before_flush", guard_b._before_flush
            )

            second.add(UserFactory.build())
            with pytest.raises(RuntimeError, match="ORM flush blocked"):
                second.flush()
        finally:
            guard_b.remove()
            second.expunge_all()
            first.close()
            second.close()
