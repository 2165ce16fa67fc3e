# tests/unit/services/test_auth_service.py
from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from jobless.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from jobless.repositories.user import UserRepository
from jobless.services._shared.errors import (
    AccountDeactivatedError,
    DuplicateAccountError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    UserNotFoundError,
)
from jobless.services._shared.ports import InMemoryRefreshSessionStore
from jobless.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn
from jobless.services.auth.service import AuthService
from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from tests.helpers.auth import mint_token

ACCESS = "svc-access-secret-0123456789abcdef"
REFRESH = "svc-refresh-secret-0123456789abcdef"


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def service() -> AuthService:
    """Build an AuthService wired to the in-memory session store."""
    return AuthService(
        token_codec=PyJWTTokenCodec(
            access_secret=ACCESS,
            refresh_secret=REFRESH,
            access_ttl=timedelta(minutes=15),
            refresh_ttl=timedelta(days=7),
        ),
        session_store=InMemoryRefreshSessionStore(),
    )


def _session_id(service: AuthService, refresh_token: str) -> str:
    return service.tokens.verify_refresh_token(refresh_token).session_id


# ------------------------------ Register ---------------------------------- #
def test_register_creates_account_and_first_session(service, session):
    result = service.register(
        RegisterIn(email="  New@Example.com ", password="secret123", full_name=" Ada ")
    )

    assert result.user.email == "new@example.com"
    assert result.user.full_name == "Ada"
    assert result.user.email_verified is False
    assert result.user.profile_picture is None

    identity = service.current_identity(result.access_token)
    assert identity.user_id == result.user.id
    assert identity.email == "new@example.com"

    sid = _session_id(service, result.refresh_token)
    stored = service.sessions.get(sid)
    assert stored is not None
    assert stored.user_id == result.user.id
    assert stored.token == result.refresh_token

    user = UserRepository().get(result.user.id)
    assert user.verify_password("secret123")


def test_register_duplicate_email_is_case_insensitive(service, session):
    UserFactory(email="taken@example.com")
    # The failed unit of work rolls back; keep the existing account out of it.
    session.commit()

    with pytest.raises(DuplicateAccountError):
        service.register(
            RegisterIn(email="TAKEN@example.com", password="secret123", full_name="Other")
        )

    assert len(UserRepository().list(filters={"email": "taken@example.com"})) == 1


# -------------------------------- Login ----------------------------------- #
def test_login_opens_an_additional_session(service, session):
    user = UserFactory()

    first = service.login(LoginIn(email=user.email.upper(), password=DEFAULT_PASSWORD))
    second = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))

    assert first.user.id == user.id
    assert first.refresh_token != second.refresh_token
    assert len(service.sessions.list_user_sessions(user.id)) == 2


def test_login_unknown_email(service, session):
    with pytest.raises(InvalidCredentialsError):
        service.login(LoginIn(email="missing@example.com", password="x"))


def test_login_wrong_password(service, session):
    user = UserFactory()
    with pytest.raises(InvalidCredentialsError):
        service.login(LoginIn(email=user.email, password="wrong-password"))
    assert service.sessions.list_user_sessions(user.id) == []


def test_login_deactivated_only_revealed_with_correct_password(service, session):
    user = UserFactory(is_active=False)

    with pytest.raises(InvalidCredentialsError):
        service.login(LoginIn(email=user.email, password="wrong-password"))
    with pytest.raises(AccountDeactivatedError):
        service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))


def test_login_logs_failure_reason(service, session, caplog):
    caplog.set_level(logging.INFO, logger="jobless.services.auth")
    user = UserFactory()

    with pytest.raises(InvalidCredentialsError):
        service.login(LoginIn(email=user.email, password="wrong-password"))

    records = [r for r in caplog.records if r.getMessage() == "auth.login"]
    assert records
    assert records[-1].reason == "bad_password"
    assert records[-1].user_id == user.id


# ------------------------------- Refresh ---------------------------------- #
def test_refresh_rotates_and_blocks_reuse(service, session):
    user = UserFactory()
    pair1 = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))

    pair2 = service.refresh(RefreshIn(refresh_token=pair1.refresh_token))
    assert pair2.refresh_token != pair1.refresh_token
    assert pair2.user.id == user.id

    with pytest.raises(InvalidRefreshTokenError):
        service.refresh(RefreshIn(refresh_token=pair1.refresh_token))

    assert service.sessions.get(_session_id(service, pair1.refresh_token)) is None
    assert service.sessions.get(_session_id(service, pair2.refresh_token)) is not None
    assert len(service.sessions.list_user_sessions(user.id)) == 1

    # The rotated token keeps working.
    service.refresh(RefreshIn(refresh_token=pair2.refresh_token))


def test_refresh_rejects_access_token(service, session):
    user = UserFactory()
    pair = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))

    with pytest.raises(InvalidRefreshTokenError):
        service.refresh(RefreshIn(refresh_token=pair.access_token))


def test_refresh_rejects_forged_token_for_live_session(service, session):
    """A validly signed token that is not the stored string does not rotate."""
    user = UserFactory()
    pair = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))
    sid = _session_id(service, pair.refresh_token)

    forged = mint_token(
        REFRESH,
        token_type="refresh",
        user_id=user.id,
        email=user.email,
        full_name="Someone Else",
        tokenId=sid,
    )
    with pytest.raises(InvalidRefreshTokenError):
        service.refresh(RefreshIn(refresh_token=forged))

    # The genuine token is untouched.
    assert service.sessions.get(sid) is not None
    service.refresh(RefreshIn(refresh_token=pair.refresh_token))


def test_refresh_fails_for_deactivated_or_deleted_user(service, session):
    user = UserFactory()
    pair = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))

    user.is_active = False
    session.flush()
    with pytest.raises(InvalidRefreshTokenError):
        service.refresh(RefreshIn(refresh_token=pair.refresh_token))

    session.delete(user)
    session.flush()
    with pytest.raises(InvalidRefreshTokenError):
        service.refresh(RefreshIn(refresh_token=pair.refresh_token))


def test_refresh_garbage(service, session):
    with pytest.raises(InvalidRefreshTokenError):
        service.refresh(RefreshIn(refresh_token="not-a-token"))


# -------------------------------- Logout ---------------------------------- #
def test_logout_single_session(service, session):
    user = UserFactory()
    pair1 = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))
    pair2 = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))

    out = service.logout(LogoutIn(user_id=user.id, refresh_token=pair1.refresh_token))

    assert out.revoked == 1
    with pytest.raises(InvalidRefreshTokenError):
        service.refresh(RefreshIn(refresh_token=pair1.refresh_token))
    service.refresh(RefreshIn(refresh_token=pair2.refresh_token))


def test_logout_everywhere(service, session):
    user = UserFactory()
    for _ in range(3):
        service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))

    out = service.logout(LogoutIn(user_id=user.id))

    assert out.revoked == 3
    assert service.sessions.list_user_sessions(user.id) == []


def test_logout_never_revokes_someone_elses_session(service, session):
    alice = UserFactory()
    bob = UserFactory()
    bob_pair = service.login(LoginIn(email=bob.email, password=DEFAULT_PASSWORD))

    out = service.logout(LogoutIn(user_id=alice.id, refresh_token=bob_pair.refresh_token))

    assert out.revoked == 0
    assert len(service.sessions.list_user_sessions(bob.id)) == 1


def test_logout_with_unverifiable_token_revokes_nothing(service, session):
    user = UserFactory()
    service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))

    out = service.logout(LogoutIn(user_id=user.id, refresh_token="garbage"))

    assert out.revoked == 0
    assert len(service.sessions.list_user_sessions(user.id)) == 1


# ------------------------------- Lookups ---------------------------------- #
def test_get_user_profile(service, session):
    user = UserFactory(profile_picture="https://cdn.example.com/a.png")

    profile = service.get_user(user.id)

    assert profile.email == user.email
    assert profile.profile_picture == "https://cdn.example.com/a.png"
    assert profile.is_active is True
    assert profile.created_at.tzinfo is not None
    assert service.get_user_by_email(user.email.upper()).id == user.id


def test_get_user_missing(service, session):
    with pytest.raises(UserNotFoundError) as excinfo:
        service.get_user(999_999)
    assert excinfo.value.code == "user_not_found"
    assert excinfo.value.message == "User not found"


def test_list_and_purge_sessions(service, session):
    user = UserFactory()
    service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))
    service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))

    sessions = service.list_sessions(user.id)
    assert len(sessions) == 2
    assert all(not s.expired and s.user_id == user.id for s in sessions)
    assert service.purge_expired_sessions() == 0
