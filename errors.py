"""Error taxonomy and the JSON error handlers that map it onto HTTP."""
import requests
from flask import jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db


class BookstoreError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class InvalidInput(BookstoreError):
    status_code = 400


class Unauthenticated(BookstoreError):
    status_code = 401


class InvalidCredential(BookstoreError):
    status_code = 401


class Forbidden(BookstoreError):
    status_code = 403


class NotFound(BookstoreError):
    status_code = 404


class FeatureDisabled(BookstoreError):
    pass


class InternalError(BookstoreError):
    pass


def register_error_handlers(app):
    @app.errorhandler(BookstoreError)
    def handle_bookstore_error(err):
        if err.status_code >= 500:
            current_app.logger.error("Request failed: %s", err.message)
        return jsonify({"message": err.message}), err.status_code

    # Raw driver/SDK messages are echoed back to the client.
    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(err):
        db.session.rollback()
        current_app.logger.error("Database query error: %s", err)
        return jsonify({"error": "Database Query Error", "details": str(err)}), 500

    @app.errorhandler(requests.RequestException)
    def handle_upstream_error(err):
        current_app.logger.error("Upstream service error: %s", err)
        return jsonify({"error": "Internal Server Error", "details": str(err)}), 500
