"""Authentication service package."""

from .dto import (
    AuthResultOut,
    LoginIn,
    LogoutIn,
    LogoutOut,
    RefreshIn,
    RegisterIn,
    SessionOut,
    UserProfileOut,
    UserPublicOut,
)
from .service import AuthService

__all__ = [
    "AuthService",
    "AuthResultOut",
    "LoginIn",
    "LogoutIn",
    "LogoutOut",
    "RefreshIn",
    "RegisterIn",
    "SessionOut",
    "UserProfileOut",
    "UserPublicOut",
]
