# sportstore/errors.py
import logging

from flask import current_app
from werkzeug.exceptions import HTTPException

from . import messages as msg
from .extensions import db
from .utils.api import err

log = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised by services; rendered as a `success: false` envelope."""

    status_code = 400

    def __init__(self, message, status_code=None, data=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.data = data


class ValidationError(ApiError):
    status_code = 400

    def __init__(self, message, field=None):
        super().__init__(message, data={"field": field} if field else None)
        self.field = field


class NotFound(ApiError):
    status_code = 404


class Forbidden(ApiError):
    status_code = 403


class Conflict(ApiError):
    status_code = 409


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e):
        db.session.rollback()
        return err(e.message, status_code=e.status_code, data=e.data)

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        db.session.rollback()
        return err(str(e) or msg.INVALID_DATA, status_code=422)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        if e.code == 404:
            return err(msg.NOT_FOUND, status_code=404)
        if e.code == 405:
            return err(msg.METHOD_NOT_ALLOWED, status_code=405)
        return err(e.description or e.name, status_code=e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        current_app.logger.exception("unhandled error: %s", e)
        return err(msg.SERVER_ERROR, status_code=500)


def register_jwt_callbacks(jwt):
    @jwt.unauthorized_loader
    def missing_token(reason):
        log.info("request without token: %s", reason)
        return err(msg.UNAUTHORIZED, status_code=401)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        log.info("invalid token: %s", reason)
        return err(msg.INVALID_TOKEN, status_code=401)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        log.info("expired token for user %s", jwt_payload.get("sub"))
        return err(msg.SESSION_EXPIRED, status_code=401)

    @jwt.revoked_token_loader
    def revoked_token(jwt_header, jwt_payload):
        return err(msg.SESSION_EXPIRED, status_code=401)
