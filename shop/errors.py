# --- shop/errors.py ---
import re

from flask import current_app, request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, NoResultFound
from werkzeug.exceptions import HTTPException

from .extensions import db
from .utils.api import err


class AppError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(AppError):
    status_code = 400


class ValidationError(BadRequestError):
    pass


class UnauthorizedError(AppError):
    status_code = 401


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


def validation_messages(exc: PydanticValidationError) -> list:
    messages = []
    for issue in exc.errors():
        path = ".".join(str(p) for p in issue.get("loc", ()))
        msg = issue.get("msg", "Invalid value")
        messages.append(f"{path}: {msg}" if path else msg)
    return messages


def format_validation_errors(exc: PydanticValidationError) -> str:
    return ", ".join(validation_messages(exc))


def parse_unique_violation(exc: IntegrityError):
    detail = str(exc.orig)
    m = re.search(r"UNIQUE constraint failed:\s*([^.]+)\.([^\s,]+)", detail)
    if m:
        return {"table": m.group(1), "column": m.group(2)}
    m = re.search(r"Key \(([^)]+)\)=\(([^)]+)\) already exists", detail)
    if m:
        return {"column": m.group(1), "value": m.group(2)}
    return None


def _log_error(e, level="error"):
    log = getattr(current_app.logger, level)
    log(
        "%s %s failed: %s",
        request.method,
        request.path,
        e,
        exc_info=level == "error" and current_app.config.get("ENV") != "production",
    )


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(e):
        _log_error(e, "warning" if e.status_code < 500 else "error")
        return err(e.message, e.status_code)

    @app.errorhandler(PydanticValidationError)
    def handle_validation_error(e):
        message = format_validation_errors(e)
        _log_error(message, "info")
        return err(message, 400)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e):
        db.session.rollback()
        info = parse_unique_violation(e)
        if info:
            _log_error(e, "warning")
            return err(f"{info['column']} already exists", 409)
        _log_error(e)
        return err(_internal_message(e), 500)

    @app.errorhandler(NoResultFound)
    def handle_no_result(e):
        _log_error(e, "warning")
        return err("Record not found", 404)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return err(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        _log_error(e)
        return err(_internal_message(e), 500)


def _internal_message(e):
    if current_app.config.get("ENV") == "production":
        return "Internal server error"
    return str(e) or e.__class__.__name__
