from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, Protocol, TypeVar

from jobless.services._shared.errors import InvalidTokenError

C = TypeVar("C")


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Authenticated principal carried by access tokens.

    :ivar user_id: Owner user id.
    :ivar email: Normalized email at issuance time.
    :ivar full_name: Display name at issuance time.
    """

    user_id: int
    email: str
    full_name: str


@dataclass(frozen=True, slots=True)
class AccessTokenClaims:
    """Verified claims of an access token."""

    identity: Identity
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class RefreshTokenClaims:
    """Verified claims of a refresh token; ``session_id`` is the ``tokenId`` claim."""

    identity: Identity
    session_id: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class TokenCheck(Generic[C]):
    """
    Outcome of a best-effort verification.

    Exactly one of ``claims`` / ``error`` is set.
    """

    claims: C | None = None
    error: InvalidTokenError | None = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


class TokenCodec(Protocol):
    """
    Port for issuing and verifying the signed token pair.

    Access and refresh tokens are signed with distinct secrets, so a token of
    one class never verifies as the other.
    """

    #: Lifetime of refresh tokens and of the sessions backing them.
    refresh_ttl: timedelta

    def issue_token_pair(self, identity: Identity, session_id: str) -> TokenPair: ...

    def verify_access_token(self, token: str) -> AccessTokenClaims:
        """:raises InvalidTokenError: on any verification failure."""
        ...

    def verify_refresh_token(self, token: str) -> RefreshTokenClaims:
        """:raises InvalidTokenError: on any verification failure."""
        ...

    def inspect_access_token(self, token: str) -> TokenCheck[AccessTokenClaims]: ...

    def inspect_refresh_token(self, token: str) -> TokenCheck[RefreshTokenClaims]: ...

