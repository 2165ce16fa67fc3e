# jobless/services/auth/service.py
from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError

from jobless.models.base import as_utc
from jobless.models.user import User, burn_password_check
from jobless.repositories.user import UserRepository
from jobless.services._shared.base import BaseService
from jobless.services._shared.errors import (
    AccountDeactivatedError,
    DuplicateAccountError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    InvalidTokenError,
    UserNotFoundError,
    violates,
)
from jobless.services._shared.ports.refresh_session_store import (
    NewRefreshSession,
    RefreshSessionStore,
    RotationResult,
)
from jobless.services._shared.ports.token_codec import Identity, TokenCodec
from jobless.services.auth.dto import (
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

logger = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Authentication lifecycle service (register / login / refresh / logout).

    Tokens are issued and verified through a :class:`TokenCodec`; every
    refresh token is backed by a row in a :class:`RefreshSessionStore` and is
    rotated (old row deleted, new row inserted under a new id) on each use.

    Domain errors raised here are translated to HTTP problems by
    :meth:`BaseService.translate_exceptions`.
    """

    def __init__(
        self,
        *,
        token_codec: TokenCodec,
        session_store: RefreshSessionStore,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_codec: Adapter for issuing/verifying the token pair.
        :param session_store: Stateful store for refresh sessions (atomic rotation).
        """
        super().__init__()
        self.tokens = token_codec
        self.sessions = session_store

    # ------------------------------------------------------------------ #
    # Register / Login
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> AuthResultOut:
        """
        Create an account and open its first session.

        :param dto: Registration input.
        :returns: Public user view and a fresh token pair.
        :raises DuplicateAccountError: If the normalized email is taken.
        """
        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                if repo.exists_by_email(dto.email):
                    raise DuplicateAccountError()
                user = User(email=dto.email, full_name=dto.full_name)
                user.password = dto.password
                repo.add(user)
                public = self._public(user)
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email.
            if violates(exc, "uq_users_email", columns=("users.email",)):
                raise DuplicateAccountError() from exc
            raise

        result = self._open_session(public)
        logger.info("auth.register", extra={"user_id": public.id})
        return result

    def login(self, dto: LoginIn) -> AuthResultOut:
        """
        Authenticate credentials and open a new session.

        The active flag is only consulted once the password has been verified,
        so unauthenticated callers cannot learn account status.

        :param dto: Login input.
        :returns: Public user view and a fresh token pair.
        :raises InvalidCredentialsError: Unknown email or wrong password.
        :raises AccountDeactivatedError: Correct password, inactive account.
        """
        with self.ro_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get_by_email(dto.email)
            if user is None:
                burn_password_check(dto.password)
                logger.warning("auth.login", extra={"reason": "unknown_email"})
                raise InvalidCredentialsError()
            if not user.verify_password(dto.password):
                logger.warning("auth.login", extra={"user_id": user.id, "reason": "bad_password"})
                raise InvalidCredentialsError()
            if not user.is_active:
                logger.warning("auth.login", extra={"user_id": user.id, "reason": "deactivated"})
                raise AccountDeactivatedError()
            public = self._public(user)

        result = self._open_session(public)
        logger.info("auth.login", extra={"user_id": public.id})
        return result

    # ------------------------------------------------------------------ #
    # Refresh with atomic rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> AuthResultOut:
        """
        Rotate a refresh token and emit a new token pair.

        Security
        --------
        - Requires a cryptographically valid refresh token whose session row
          still exists and stores exactly the presented string.
        - The old row is deleted and the new one inserted in one atomic store
          operation; re-using a rotated token therefore fails.

        :raises InvalidRefreshTokenError: On any verification or rotation failure.
        """
        try:
            claims = self.tokens.verify_refresh_token(dto.refresh_token)
        except InvalidTokenError as exc:
            logger.warning("auth.refresh", extra={"reason": "unverifiable"})
            raise InvalidRefreshTokenError() from exc

        user_id = claims.identity.user_id
        with self.ro_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get(user_id)
            if user is None or not user.is_active:
                reason = "unknown_user" if user is None else "deactivated"
                logger.warning("auth.refresh", extra={"user_id": user_id, "reason": reason})
                raise InvalidRefreshTokenError()
            public = self._public(user)

        new_session_id = self.sessions.new_session_id()
        pair = self.tokens.issue_token_pair(self._identity(public), new_session_id)
        now = self.now_utc()
        outcome = self.sessions.rotate(
            old_session_id=claims.session_id,
            presented_token=dto.refresh_token,
            replacement=NewRefreshSession(
                session_id=new_session_id,
                user_id=public.id,
                token=pair.refresh_token,
                expires_at=now + self.tokens.refresh_ttl,
            ),
            now=now,
        )
        if outcome is not RotationResult.OK:
            logger.warning(
                "auth.refresh", extra={"user_id": user_id, "reason": outcome.name.lower()}
            )
            raise InvalidRefreshTokenError()

        logger.info("auth.refresh", extra={"user_id": user_id})
        return AuthResultOut(
            user=public,
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        )

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> LogoutOut:
        """
        End one session (when a refresh token is given) or all of them.

        A refresh token that does not verify, or that belongs to someone else,
        revokes nothing; logout itself never fails on token problems.
        """
        if dto.refresh_token is None:
            revoked = self.sessions.delete_all_for_user(dto.user_id)
            logger.info("auth.logout", extra={"user_id": dto.user_id, "revoked": revoked})
            return LogoutOut(revoked=revoked)

        check = self.tokens.inspect_refresh_token(dto.refresh_token)
        if check.claims is None:
            logger.info(
                "auth.logout",
                extra={"user_id": dto.user_id, "revoked": 0, "reason": "unverifiable"},
            )
            return LogoutOut(revoked=0)

        deleted = self.sessions.delete(check.claims.session_id, user_id=dto.user_id)
        revoked = 1 if deleted else 0
        logger.info("auth.logout", extra={"user_id": dto.user_id, "revoked": revoked})
        return LogoutOut(revoked=revoked)

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    def get_user(self, user_id: int) -> UserProfileOut:
        """
        Return the profile of ``user_id``.

        :raises UserNotFoundError: If the account no longer exists.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            return self._profile(user)

    def get_user_by_email(self, email: str) -> UserProfileOut:
        """Email variant of :meth:`get_user`, used by operator tooling."""
        with self.ro_uow() as uow:
            user = uow.users.get_by_email(email)
            if user is None:
                raise UserNotFoundError(email)
            return self._profile(user)

    def current_identity(self, token: str) -> Identity:
        """
        Resolve the identity carried by an access token.

        :raises InvalidTokenError: If the token does not verify.
        """
        return self.tokens.verify_access_token(token).identity

    # ------------------------------------------------------------------ #
    # Session housekeeping
    # ------------------------------------------------------------------ #

    def list_sessions(self, user_id: int) -> list[SessionOut]:
        now = self.now_utc()
        return [
            SessionOut(
                session_id=s.session_id,
                user_id=s.user_id,
                created_at=s.created_at,
                expires_at=s.expires_at,
                expired=s.is_expired(now),
            )
            for s in self.sessions.list_user_sessions(user_id)
        ]

    def purge_expired_sessions(self) -> int:
        """Delete every expired refresh session; returns how many were removed."""
        return self.sessions.purge_expired(self.now_utc())

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def _open_session(self, public: UserPublicOut) -> AuthResultOut:
        """Mint a session id, issue the pair and persist the session row."""
        session_id = self.sessions.new_session_id()
        pair = self.tokens.issue_token_pair(self._identity(public), session_id)
        self.sessions.create(
            NewRefreshSession(
                session_id=session_id,
                user_id=public.id,
                token=pair.refresh_token,
                expires_at=self.now_utc() + self.tokens.refresh_ttl,
            )
        )
        return AuthResultOut(
            user=public,
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        )

    @staticmethod
    def _identity(public: UserPublicOut) -> Identity:
        return Identity(user_id=public.id, email=public.email, full_name=public.full_name)

    @staticmethod
    def _public(user: User) -> UserPublicOut:
        return UserPublicOut(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            profile_picture=user.profile_picture,
            email_verified=bool(user.email_verified),
        )

    @staticmethod
    def _profile(user: User) -> UserProfileOut:
        return UserProfileOut(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            profile_picture=user.profile_picture,
            email_verified=bool(user.email_verified),
            is_active=bool(user.is_active),
            created_at=as_utc(user.created_at),
        )

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)
