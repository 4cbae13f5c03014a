from flask import jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from src.extensions import db
from src.logger import get_logger

logger = get_logger("errors")


class AppError(Exception):
    status_code = 500
    error = "Internal Server Error"
    default_message = "Something went wrong"

    def __init__(self, message=None, details=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self):
        body = {
            "statusCode": self.status_code,
            "message": self.message,
            "error": self.error,
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    status_code = 400
    error = "Bad Request"
    default_message = "Validation failed"

    def __init__(self, details=None, message=None):
        if isinstance(details, str):
            details = [details]
        super().__init__(message, details or [])


class NotFoundError(AppError):
    status_code = 404
    error = "Not Found"
    default_message = "Resource not found"


class DuplicateEntryError(AppError):
    status_code = 400
    error = "Duplicate entry"
    default_message = "Duplicate entry"

    def __init__(self, message=None, field=None):
        details = [f"{field} already exists"] if field else None
        super().__init__(message, details)


class AuthenticationError(AppError):
    status_code = 401
    error = "Unauthorized"
    default_message = "Authentication required"


class AuthorizationError(AppError):
    status_code = 403
    error = "Forbidden"
    default_message = "Access denied"


class ServerError(AppError):
    status_code = 500
    error = "Internal Server Error"
    default_message = "Something went wrong"


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(e):
        db.session.rollback()
        if e.status_code >= 500:
            logger.error("Server error: %s", e.message)
            e = ServerError()
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e):
        db.session.rollback()
        logger.warning("Integrity error: %s", str(e.orig))
        err = DuplicateEntryError()
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({
            "statusCode": e.code,
            "message": e.description,
            "error": e.name,
        }), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        db.session.rollback()
        logger.exception("Unhandled error: %s", str(e))
        err = ServerError()
        return jsonify(err.to_dict()), err.status_code
