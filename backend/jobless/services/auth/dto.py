# jobless/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param email: User email (normalized by the model).
    :type email: str
    :param password: Raw password (hashed by the model).
    :type password: str
    :param full_name: Display name.
    :type full_name: str
    """

    email: str
    password: str
    full_name: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param user_id: Authenticated user (from the access token).
    :type user_id: int
    :param refresh_token: Session to end; ``None`` ends every session.
    :type refresh_token: str | None
    """

    user_id: int
    refresh_token: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """
    Public user view; never carries the password hash.

    :param id: User id.
    :param email: Normalized email.
    :param full_name: Display name.
    :param profile_picture: Avatar URL or ``None``.
    :param email_verified: Whether the address has been confirmed.
    """

    id: int
    email: str
    full_name: str
    profile_picture: str | None
    email_verified: bool


@dataclass(frozen=True, slots=True)
class UserProfileOut:
    """Public view plus account status, returned by ``get_user``."""

    id: int
    email: str
    full_name: str
    profile_picture: str | None
    email_verified: bool
    is_active: bool
    created_at: datetime


@dataclass(frozen=True, slots=True)
class AuthResultOut:
    """
    Output DTO for register/login/refresh.

    :param user: Public user view.
    :type user: UserPublicOut
    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    user: UserPublicOut
    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutOut:
    """
    Output DTO for logout.

    :param revoked: Number of refresh sessions deleted.
    :type revoked: int
    """

    revoked: int


@dataclass(frozen=True, slots=True)
class SessionOut:
    """Operator view of a refresh session; the token string is omitted."""

    session_id: str
    user_id: int
    created_at: datetime
    expires_at: datetime
    expired: bool
