from marshmallow import Schema, fields, pre_load, validates, ValidationError

MIN_PASSWORD_LENGTH = 8


def _norm(v):
    return v.strip().lower() if isinstance(v, str) else v


def _check_password(value):
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")


class UserCreateSchema(Schema):
    username = fields.String(required=True)
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            for key in ("username", "email"):
                if key in data:
                    data[key] = _norm(data[key])
        return data

    @validates("username")
    def validate_username(self, value, **kwargs):
        if not value:
            raise ValidationError("Username must not be empty.")

    @validates("password")
    def validate_password(self, value, **kwargs):
        _check_password(value)


class UserLoginSchema(Schema):
    identity = fields.String(required=True)
    password = fields.String(required=True, load_only=True)


class RefreshSchema(Schema):
    refresh_token = fields.String(required=True)


class LogoutSchema(Schema):
    refresh_token = fields.String(load_default=None)


class PasswordChangeSchema(Schema):
    old_password = fields.String(required=True, load_only=True)
    new_password = fields.String(required=True, load_only=True)

    @validates("new_password")
    def validate_new_password(self, value, **kwargs):
        _check_password(value)


class PasswordForgotSchema(Schema):
    email = fields.Email(required=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm(data["email"]))
        return data


class PasswordResetSchema(Schema):
    reset_token = fields.String(required=True)
    new_password = fields.String(required=True, load_only=True)

    @validates("new_password")
    def validate_new_password(self, value, **kwargs):
        _check_password(value)


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    username = fields.String()
    email = fields.String()
    created_at = fields.Integer()
