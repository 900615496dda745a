from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
import logging

from models.errors import AuthError, AuthErrorCode

# Store error identifiers -> HTTP status
AUTH_ERROR_STATUS = {
    AuthErrorCode.USERNAME_TAKEN: 409,
    AuthErrorCode.EMAIL_TAKEN: 409,
    AuthErrorCode.INVALID_CREDENTIALS: 401,
    AuthErrorCode.MISSING_REFRESH_TOKEN: 422,
    AuthErrorCode.INVALID_REFRESH_TOKEN: 401,
    AuthErrorCode.REFRESH_TOKEN_EXPIRED: 401,
    AuthErrorCode.USER_NOT_FOUND: 404,
    AuthErrorCode.INVALID_CURRENT_PASSWORD: 401,
    AuthErrorCode.MISSING_PARAMS: 422,
    AuthErrorCode.INVALID_RESET_TOKEN: 400,
    AuthErrorCode.CREDENTIALS_REQUIRED: 422,
    AuthErrorCode.EMAIL_REQUIRED: 422,
    AuthErrorCode.FIELDS_REQUIRED: 422,
}

HTTP_ERROR_NAMES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
}


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Store failures carry their own identifier
    @app.errorhandler(AuthError)
    def handle_auth_error(err: AuthError):
        status = AUTH_ERROR_STATUS.get(err.code, 400)
        return error_response(err.code.name, err.message, status)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        if current_app and current_app.debug:
            logging.exception("Validation failed", exc_info=err)
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Werkzeug HTTPExceptions (abort(...), 404, 405) keep their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 400
        return error_response(HTTP_ERROR_NAMES.get(status, "BAD_REQUEST"), err.description, status)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logging.exception("Unhandled exception", exc_info=err)
        # In dev, include exception details to speed up debugging
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
