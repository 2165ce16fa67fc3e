"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AuthResultSchema,
    LoginSchema,
    LogoutResultSchema,
    LogoutSchema,
    RefreshSchema,
    RegisterSchema,
)
from .user import SessionSchema, UserProfileSchema, UserPublicSchema

__all__ = [
    "AuthResultSchema",
    "LoginSchema",
    "LogoutResultSchema",
    "LogoutSchema",
    "RefreshSchema",
    "RegisterSchema",
    "SessionSchema",
    "UserProfileSchema",
    "UserPublicSchema",
]
