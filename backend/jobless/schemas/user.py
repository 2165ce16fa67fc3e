"""User resource schemas."""

from __future__ import annotations

from marshmallow import Schema, fields


class UserPublicSchema(Schema):
    """Public representation of a user; never includes the password hash."""

    id = fields.Integer(required=True)
    email = fields.Email(required=True)
    full_name = fields.String(required=True, data_key="fullName")
    profile_picture = fields.String(allow_none=True, data_key="profilePicture")
    email_verified = fields.Boolean(required=True, data_key="emailVerified")


class UserProfileSchema(UserPublicSchema):
    """Profile returned by ``/auth/me``."""

    is_active = fields.Boolean(required=True, data_key="isActive")
    created_at = fields.DateTime(required=True, data_key="createdAt")


class SessionSchema(Schema):
    """Operator view of a refresh session."""

    session_id = fields.String(required=True, data_key="sessionId")
    user_id = fields.Integer(required=True, data_key="userId")
    created_at = fields.DateTime(required=True, data_key="createdAt")
    expires_at = fields.DateTime(required=True, data_key="expiresAt")
    expired = fields.Boolean(required=True)
