"""
Unit of Work contract seen by the auth services and the relational store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jobless.repositories import RefreshSessionRepository, UserRepository


class UnitOfWork(ABC):
    """
    One transactional boundary around account and refresh-session changes.

    A relational refresh deletes the old session row and inserts its
    replacement inside one unit, so either both land or neither does.
    """

    users: UserRepository
    refresh_sessions: RefreshSessionRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...
    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...
    @abstractmethod
    def commit(self) -> None: ...
    @abstractmethod
    def rollback(self) -> None: ...
