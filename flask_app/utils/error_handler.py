# flask_app/utils/error_handler.py

"""
JSON error responses for the API.

Views raise :class:`ApiError` for request-level failures; everything else that
escapes a view is logged and turned into a 500.
"""

from http import HTTPStatus

from flask import jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from flask_app.models import db


class ApiError(Exception):
    """Request-level failure carrying an HTTP status and optional extra payload fields."""

    def __init__(self, message, status_code=HTTPStatus.INTERNAL_SERVER_ERROR, **extra_fields):
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.extra_fields = extra_fields

    def to_dict(self):
        payload = {"status": self.status_code, "message": self.message}
        payload.update(self.extra_fields)
        return payload


def _error_response(status_code, message, **extra):
    payload = {"status": int(status_code), "message": message}
    payload.update(extra)
    return jsonify(payload), int(status_code)


def init_error_handlers(app):
    """Register JSON error handlers on the app."""

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            app.logger.error("API error: %s", error.message)
        else:
            app.logger.info("Request rejected (%s): %s", error.status_code, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def endpoint_not_found(error):
        return _error_response(
            HTTPStatus.NOT_FOUND,
            "Endpoint not found, perhaps you're using the wrong method?",
            url=request.url,
            method=request.method,
        )

    @app.errorhandler(405)
    def method_not_allowed(error):
        return _error_response(HTTPStatus.METHOD_NOT_ALLOWED, "Method not allowed for this endpoint.", method=request.method)

    @app.errorhandler(SQLAlchemyError)
    def database_error(error):
        db.session.rollback()
        app.logger.error("Database error while handling %s %s", request.method, request.path, exc_info=error)
        return _error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal server error (database).")

    @app.errorhandler(HTTPException)
    def http_error(error):
        return _error_response(error.code or HTTPStatus.INTERNAL_SERVER_ERROR, error.description or error.name)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        original = getattr(error, "original_exception", None) or error
        app.logger.error("Unhandled error while handling %s %s", request.method, request.path, exc_info=original)
        return _error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal server error.")
