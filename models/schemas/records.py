"""
Schemas for the persisted credential document.

The file uses camelCase keys ("password", "createdAt", "userId", ...); the
models use snake_case attributes. data_key bridges the two and post_load
rebuilds model instances on every reload.
"""
from marshmallow import Schema, fields, post_load, EXCLUDE

from models.user import User
from models.refresh_token import RefreshToken
from models.reset_token import ResetToken


class _RecordSchema(Schema):
    class Meta:
        unknown = EXCLUDE


class UserRecordSchema(_RecordSchema):
    id = fields.String(required=True)
    username = fields.String(required=True)
    email = fields.String(required=True)
    password_hash = fields.String(required=True, data_key="password")
    created_at = fields.Integer(required=True, data_key="createdAt")

    @post_load
    def make_user(self, data, **kwargs):
        return User(**data)


class RefreshTokenRecordSchema(_RecordSchema):
    token = fields.String(required=True)
    user_id = fields.String(required=True, data_key="userId")
    expires_at = fields.Integer(required=True, data_key="expiresAt")

    @post_load
    def make_refresh_token(self, data, **kwargs):
        return RefreshToken(**data)


class ResetTokenRecordSchema(_RecordSchema):
    user_id = fields.String(required=True, data_key="userId")
    token_hash = fields.String(required=True, data_key="tokenHash")
    expires_at = fields.Integer(required=True, data_key="expiresAt")

    @post_load
    def make_reset_token(self, data, **kwargs):
        return ResetToken(**data)
