"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; the handlers registered by ``register_error_handlers``
render every one of them as ``{"message": ...}`` with the matching status.
"""

from flask import jsonify
from werkzeug.exceptions import HTTPException


class AppError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message=None):
        if message:
            self.message = message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    message = "Invalid request"


class AuthenticationError(AppError):
    status_code = 401
    message = "Please authenticate"


class AuthorizationError(AppError):
    status_code = 403
    message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class ConflictError(AppError):
    status_code = 400
    message = "Already exists"


class StorageError(AppError):
    status_code = 500
    message = "Database error. Please try again later."


class UpstreamError(AppError):
    status_code = 500
    message = "Upstream service error. Please try again later."


# Account lifecycle kinds

class MissingFields(ValidationError):
    message = "All required fields must be provided"


class AlreadyRegistered(ConflictError):
    message = "Email already registered"


class AccountNotFound(NotFoundError):
    message = "User not found"


class InvalidOtp(ValidationError):
    message = "Invalid OTP"


class OtpExpired(ValidationError):
    message = "OTP has expired"


class InvalidCredentials(AuthenticationError):
    message = "Invalid credentials"


class NoToken(AuthenticationError):
    message = "No auth token"


class InvalidToken(AuthenticationError):
    message = "Token is not valid"


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(exc):
        if exc.status_code >= 500:
            app.logger.error("%s: %s", type(exc).__name__, exc.message)
        return jsonify({"message": exc.message}), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return jsonify({"message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        app.logger.exception("Unhandled error: %s", exc)
        return jsonify({"message": "Internal server error"}), 500
