"""
API error types and their JSON rendering.
"""
import logging
from typing import Optional

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error with a client-facing message and HTTP status."""
    status_code = 500

    def __init__(self, message: str = "InternalServerError", status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequest(ApiError):
    status_code = 400


class Forbidden(ApiError):
    status_code = 403


class NotFound(ApiError):
    status_code = 404


def register_error_handlers(app) -> None:
    """Attach JSON error handlers to the Flask app."""

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        return jsonify({'error': error.message}), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(error: SQLAlchemyError):
        logger.error(f"Storage failure: {error}", exc_info=True)
        return jsonify({'error': 'InternalServerError'}), 500
