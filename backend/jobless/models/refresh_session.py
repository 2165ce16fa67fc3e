"""Server-side refresh session: one row per live refresh token."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobless.core.extensions import db

from .base import ReprMixin

if TYPE_CHECKING:
    from .user import User


class RefreshSession(ReprMixin, db.Model):
    """
    Refresh session bound to exactly one serialized refresh token.

    Fields
    ------
    id : str
        64 hex chars; embedded in the refresh token as ``tokenId``.
    user_id : int
        Owner; rows go away with the user (``ON DELETE CASCADE``).
    token : str
        Exact refresh token string handed to the client.
    expires_at : datetime
        Absolute expiry (UTC). Expired rows never rotate.
    created_at : datetime
        Insert timestamp.

    Notes
    -----
    Rows are never updated in place: rotation deletes the row and inserts a
    replacement under a fresh id.
    """

    __tablename__ = "refresh_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    user: Mapped[User] = relationship("User", back_populates="refresh_sessions")
