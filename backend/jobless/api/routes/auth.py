"""Authentication endpoints backed by :class:`AuthService`."""

from __future__ import annotations

from flask import Blueprint, request

from jobless.api.deps import get_auth_service, json_response, require_auth, timing
from jobless.schemas import (
    AuthResultSchema,
    LoginSchema,
    LogoutResultSchema,
    LogoutSchema,
    RefreshSchema,
    RegisterSchema,
    UserProfileSchema,
)
from jobless.services._shared.ports import Identity
from jobless.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
auth_result_schema = AuthResultSchema()
logout_result_schema = LogoutResultSchema()
profile_schema = UserProfileSchema()


def _body() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


@bp.post("/register")
@timing
def register():
    """Create an account and return the user with a fresh token pair."""

    data = register_schema.load(_body())
    result = get_auth_service().register(RegisterIn(**data))
    return json_response({"data": auth_result_schema.dump(result)}, status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and open a new session."""

    data = login_schema.load(_body())
    result = get_auth_service().login(LoginIn(**data))
    return json_response({"data": auth_result_schema.dump(result)})


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a refresh token for a new pair; the old token stops working."""

    data = refresh_schema.load(_body())
    result = get_auth_service().refresh(RefreshIn(**data))
    return json_response({"data": auth_result_schema.dump(result)})


@bp.post("/logout")
@require_auth
@timing
def logout(identity: Identity):
    """End the session named by ``refreshToken``, or every session when absent."""

    data = logout_schema.load(_body())
    refresh_token = data["refresh_token"] or None
    result = get_auth_service().logout(
        LogoutIn(user_id=identity.user_id, refresh_token=refresh_token)
    )
    message = "Logged out" if refresh_token else "Logged out from all sessions"
    body = logout_result_schema.dump({"message": message, "revoked": result.revoked})
    return json_response(body)


@bp.get("/me")
@require_auth
@timing
def me(identity: Identity):
    """Return the authenticated user's profile."""

    profile = get_auth_service().get_user(identity.user_id)
    return json_response({"data": {"user": profile_schema.dump(profile)}})
