"""HTTP error boundary: every failure leaves as the same JSON envelope."""

from __future__ import annotations

import logging
from typing import Any

import mysql.connector
from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from .exceptions import DomainError, ErrorKind

logger = logging.getLogger(__name__)

SERVER_ERROR_CODE = "SERVER_001"
HTTP_ERROR_CODES = {404: "HTTP_404", 405: "HTTP_405"}


def _request_context() -> dict[str, Any]:
    claims = g.get("current_user")
    return {
        "method": request.method,
        "path": request.path,
        "ip": request.remote_addr,
        "user_agent": request.headers.get("User-Agent"),
        "user_id": getattr(claims, "id", None),
    }


def envelope(message: str, code: str, **extra: Any) -> dict[str, Any]:
    error = {"message": message, "code": code}
    error.update({k: v for k, v in extra.items() if v is not None})
    return {"success": False, "error": error}


def register(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        level = logging.ERROR if e.status >= 500 else logging.WARNING
        logger.log(level, "%s %s: %s", e.kind.name, e.code, e.message, extra={"request": _request_context()})
        if e.__cause__ is not None and e.status >= 500:
            logger.error("Caused by: %r", e.__cause__)

        extra: dict[str, Any] = {}
        if app.config.get("DEBUG"):
            extra = {"name": e.kind.name, "details": e.details, "field": e.field, "resource": e.resource}
        elif e.kind is ErrorKind.VALIDATION:
            extra = {"details": e.details}
        return jsonify(envelope(e.message, e.code, **extra)), e.status

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        if e.code == 413:
            kind = ErrorKind.FILE_TOO_LARGE
            return jsonify(envelope("File too large", kind.default_code)), kind.status
        logger.warning("HTTP %s on %s %s", e.code, request.method, request.path)
        code = HTTP_ERROR_CODES.get(e.code, f"HTTP_{e.code}")
        return jsonify(envelope(e.name, code)), e.code

    @app.errorhandler(mysql.connector.Error)
    def handle_database_error(e: mysql.connector.Error):
        logger.exception("Database error: %s", _request_context())
        kind = ErrorKind.DATABASE
        return jsonify(envelope("Database operation failed", kind.default_code)), kind.status

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error: %s", _request_context())
        return jsonify(envelope("Internal server error", SERVER_ERROR_CODE)), 500
