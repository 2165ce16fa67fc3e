"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They serve as stable contracts between repositories, token
adapters, session stores and application services.

The translation to HTTP responses (RFC 7807) is handled by
``jobless/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(
    exc: IntegrityError, constraint_name: str, *, columns: tuple[str, ...] = ()
) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').
    columns : tuple[str, ...], optional
        ``table.column`` names to match when the driver omits the constraint
        name (SQLite reports ``UNIQUE constraint failed: users.email``).

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    if constraint_name.lower() in message:
        return True
    return any(column.lower() in message for column in columns)


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to APIError through BaseService.
    - ``message`` is the client-safe text; ``code`` is the stable identifier.
    """

    code = "bad_request"
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True, eq=False)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    code = "not_found"

    entity: str
    key: str | int

    def __post_init__(self) -> None:
        ServiceError.__init__(self, f"{self.entity} not found")

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.entity} not found: {self.key}"


class UserNotFoundError(NotFoundError):
    """The user behind a valid identity no longer exists."""

    code = "user_not_found"

    def __init__(self, key: int | str) -> None:
        NotFoundError.__init__(self, "User", key)


class DuplicateAccountError(ServiceError):
    """An account already exists for the (normalized) email."""

    code = "duplicate_account"
    default_message = "User already exists"


class InvalidCredentialsError(ServiceError):
    """Unknown email or wrong password; the two are indistinguishable."""

    code = "invalid_credentials"
    default_message = "Invalid credentials"


class AccountDeactivatedError(ServiceError):
    """Correct password, but ``is_active`` is false."""

    code = "account_deactivated"
    default_message = "Account is deactivated"


class InvalidRefreshTokenError(ServiceError):
    """Refresh token failed verification, rotation, or its owner is gone."""

    code = "invalid_refresh_token"
    default_message = "Invalid refresh token"


class InvalidTokenError(ServiceError):
    """A token could not be verified (signature, expiry, type or shape)."""

    code = "invalid_token"
    default_message = "Invalid or expired token"
