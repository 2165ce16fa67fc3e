# jobless/infra/jwt/pyjwt_token_codec.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from jobless.services._shared.errors import InvalidTokenError
from jobless.services._shared.ports import (
    AccessTokenClaims,
    Identity,
    RefreshTokenClaims,
    TokenCheck,
    TokenCodec,
    TokenPair,
)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

_REQUIRED_CLAIMS = ["exp", "iat", "type", "userId", "email", "fullName"]


@dataclass(slots=True)
class PyJWTTokenCodec(TokenCodec):
    """
    HMAC-signed JWT codec built on PyJWT.

    :param access_secret: Signing secret for access tokens.
    :param refresh_secret: Signing secret for refresh tokens; must differ from
        ``access_secret``.
    :param access_ttl: Access token lifetime.
    :param refresh_ttl: Refresh token lifetime.
    :param algorithm: HMAC algorithm (``HS256`` by default).
    :param leeway: Clock skew tolerated when checking ``exp``.

    :raises ValueError: If a secret is empty or both secrets are equal.
    """

    access_secret: str = field(repr=False)
    refresh_secret: str = field(repr=False)
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=7)
    algorithm: str = "HS256"
    leeway: timedelta = timedelta(seconds=0)

    def __post_init__(self) -> None:
        if not self.access_secret or not self.refresh_secret:
            raise ValueError("Both JWT_SECRET and JWT_REFRESH_SECRET must be set.")
        if self.access_secret == self.refresh_secret:
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must differ.")
        if self.access_ttl <= timedelta(0) or self.refresh_ttl <= timedelta(0):
            raise ValueError("Token lifetimes must be positive.")

    # -------------------- issue --------------------

    def issue_token_pair(self, identity: Identity, session_id: str) -> TokenPair:
        now = datetime.now(UTC)
        access = self._encode(
            self._base_claims(identity, ACCESS_TOKEN_TYPE, now, self.access_ttl),
            self.access_secret,
        )
        refresh_claims = self._base_claims(identity, REFRESH_TOKEN_TYPE, now, self.refresh_ttl)
        refresh_claims["tokenId"] = session_id
        refresh = self._encode(refresh_claims, self.refresh_secret)
        return TokenPair(access_token=access, refresh_token=refresh)

    # -------------------- verify -------------------

    def verify_access_token(self, token: str) -> AccessTokenClaims:
        payload = self._decode(token, self.access_secret, ACCESS_TOKEN_TYPE)
        return AccessTokenClaims(
            identity=self._identity(payload),
            issued_at=self._ts(payload["iat"]),
            expires_at=self._ts(payload["exp"]),
        )

    def verify_refresh_token(self, token: str) -> RefreshTokenClaims:
        payload = self._decode(token, self.refresh_secret, REFRESH_TOKEN_TYPE)
        session_id = payload.get("tokenId")
        if not isinstance(session_id, str) or not session_id:
            raise InvalidTokenError("Malformed token claims")
        return RefreshTokenClaims(
            identity=self._identity(payload),
            session_id=session_id,
            issued_at=self._ts(payload["iat"]),
            expires_at=self._ts(payload["exp"]),
        )

    def inspect_access_token(self, token: str) -> TokenCheck[AccessTokenClaims]:
        try:
            return TokenCheck(claims=self.verify_access_token(token))
        except InvalidTokenError as exc:
            return TokenCheck(error=exc)

    def inspect_refresh_token(self, token: str) -> TokenCheck[RefreshTokenClaims]:
        try:
            return TokenCheck(claims=self.verify_refresh_token(token))
        except InvalidTokenError as exc:
            return TokenCheck(error=exc)

    # -------------------- helpers ------------------

    @staticmethod
    def _base_claims(
        identity: Identity, token_type: str, now: datetime, ttl: timedelta
    ) -> dict[str, Any]:
        return {
            "userId": identity.user_id,
            "email": identity.email,
            "fullName": identity.full_name,
            "type": token_type,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }

    def _encode(self, payload: dict[str, Any], secret: str) -> str:
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def _decode(self, token: str, secret: str, expected_type: str) -> dict[str, Any]:
        if not isinstance(token, str) or not token:
            raise InvalidTokenError()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                leeway=self.leeway,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError() from exc

        if payload.get("type") != expected_type:
            raise InvalidTokenError("Wrong token type")
        return payload

    @staticmethod
    def _identity(payload: dict[str, Any]) -> Identity:
        user_id = payload.get("userId")
        email = payload.get("email")
        full_name = payload.get("fullName")
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            raise InvalidTokenError("Malformed token claims")
        if not isinstance(email, str) or not isinstance(full_name, str):
            raise InvalidTokenError("Malformed token claims")
        return Identity(user_id=user_id, email=email, full_name=full_name)

    @staticmethod
    def _ts(value: Any) -> datetime:
        return datetime.fromtimestamp(int(value), tz=UTC)
