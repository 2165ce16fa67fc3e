"""Authentication-related Marshmallow schemas.

Wire keys are camelCase (``fullName``, ``refreshToken``) to match the
dashboard client; attributes stay snake_case.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate

from .user import UserPublicSchema


class _InputSchema(Schema):
    class Meta:
        unknown = EXCLUDE


class RegisterSchema(_InputSchema):
    """Input payload for account registration."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=6, max=128))
    full_name = fields.String(
        required=True, data_key="fullName", validate=validate.Length(min=2, max=100)
    )


class LoginSchema(_InputSchema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(_InputSchema):
    """Input payload for rotating a refresh token."""

    refresh_token = fields.String(
        required=True, data_key="refreshToken", validate=validate.Length(min=1)
    )


class LogoutSchema(_InputSchema):
    """Input payload for logout; without ``refreshToken`` every session ends."""

    refresh_token = fields.String(load_default=None, allow_none=True, data_key="refreshToken")


class AuthResultSchema(Schema):
    """Response payload for register, login and refresh."""

    user = fields.Nested(UserPublicSchema, required=True)
    access_token = fields.String(required=True, data_key="accessToken")
    refresh_token = fields.String(required=True, data_key="refreshToken")


class LogoutResultSchema(Schema):
    """Response payload for logout."""

    message = fields.String(required=True)
    revoked = fields.Integer(required=True, data_key="revokedSessions")
