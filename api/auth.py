"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- POST /auth/logout/all        (Bearer) revoke every refresh token of the user
- POST /auth/password          (Bearer) change password
- POST /auth/password/forgot   request a reset token
- POST /auth/password/reset    set a new password with a reset token

Handlers validate input with marshmallow and delegate to the CredentialStore;
AuthError identifiers are turned into HTTP statuses by api.errors.
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, current_app

from models.errors import AuthError, AuthErrorCode
from models.schemas.user import (
    UserCreateSchema,
    UserLoginSchema,
    RefreshSchema,
    LogoutSchema,
    PasswordChangeSchema,
    PasswordForgotSchema,
    PasswordResetSchema,
)
from utils.decorators import jwt_required, get_store

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/auth")

user_create_schema = UserCreateSchema()
user_login_schema = UserLoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
password_change_schema = PasswordChangeSchema()
password_forgot_schema = PasswordForgotSchema()
password_reset_schema = PasswordResetSchema()


def _access_expires_in() -> int:
    return get_store().access_ttl


@bp.post("/register")
def register():
    """
    register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string }
            email: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created
      409:
        description: Username or email already registered
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)
    user = get_store().register(data["username"], data["email"], data["password"])
    return jsonify({"data": user}), 201


@bp.post("/login")
def login():
    """
    Login with username or email: returns access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             identity: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)
    result = get_store().authenticate(data["identity"], data["password"])
    return jsonify(
        {
            "access_token": result["access_token"],
            "refresh_token": result["refresh_token"],
            "token_type": "bearer",
            "expires_in": _access_expires_in(),
            "user": result["user"],
        }
    ), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange a refresh token for a new access token (no rotation)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns access token)
      401:
        description: Invalid, expired or revoked refresh token
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_schema.load(payload)
    result = get_store().refresh_access_token(data["refresh_token"])
    return jsonify(
        {
            "access_token": result["access_token"],
            "token_type": "bearer",
            "expires_in": _access_expires_in(),
        }
    ), 200


@bp.post("/logout")
def logout():
    """
    logout: revokes the refresh token (idempotent)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      204:
        description: ""
    """
    payload = request.get_json(silent=True) or {}
    data = logout_schema.load(payload)
    if data.get("refresh_token"):
        get_store().revoke_refresh_token(data["refresh_token"])
    return ("", 204)


@bp.post("/password")
@jwt_required()
def change_password():
    """
    Change the current user's password
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             old_password: { type: string }
             new_password: { type: string }
    responses:
      200:
        description: Password changed
      401:
        description: Unauthorized or wrong current password
    """
    payload = request.get_json(silent=True) or {}
    data = password_change_schema.load(payload)
    get_store().change_password(g.current_user["id"], data["old_password"], data["new_password"])
    return jsonify({"message": "Password changed"}), 200


@bp.post("/password/forgot")
def forgot_password():
    """
    Request a password reset token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
    responses:
      202:
        description: Accepted (the token is only returned when EXPOSE_RESET_TOKEN is on)
    """
    payload = request.get_json(silent=True) or {}
    data = password_forgot_schema.load(payload)
    body = {"message": "If the account exists, a reset token has been issued"}
    try:
        issued = get_store().generate_reset_token(data["email"])
    except AuthError as err:
        if err.code is not AuthErrorCode.USER_NOT_FOUND:
            raise
        # same answer for unknown addresses, no account enumeration
        logger.info("Password reset requested for unknown email")
        return jsonify(body), 202

    if current_app.config.get("EXPOSE_RESET_TOKEN"):
        body.update(issued)
    return jsonify(body), 202


@bp.post("/password/reset")
def reset_password():
    """
    Set a new password with a reset token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             reset_token: { type: string }
             new_password: { type: string }
    responses:
      200:
        description: Password reset
      400:
        description: Invalid or expired reset token
    """
    payload = request.get_json(silent=True) or {}
    data = password_reset_schema.load(payload)
    get_store().consume_reset_token(data["reset_token"], data["new_password"])
    return jsonify({"message": "Password has been reset"}), 200


@bp.post("/logout/all")
@jwt_required()
def logout_all():
    """
    logout everywhere: revokes every refresh token of the current user
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Number of refresh tokens revoked
      401:
        description: Unauthorized
    """
    revoked = get_store().revoke_user_refresh_tokens(g.current_user["id"])
    return jsonify({"revoked": revoked}), 200
