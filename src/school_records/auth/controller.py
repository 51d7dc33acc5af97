from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import FieldErrors, require_non_empty
from ..core.enums import Permission
from ..users.validation import check_account_fields
from ..container import Container
from .guards import current_claims, permission_required
from .model import ClientContext


def client_context() -> ClientContext:
    # remote_addr is already rewritten by ProxyFix when TRUSTED_PROXIES > 0
    return ClientContext(ip_address=request.remote_addr or None, user_agent=request.headers.get("User-Agent"))


def register(app: Flask, container: Container) -> None:
    @app.route("/api/v1/auth/register", methods=["POST"], endpoint="auth_register")
    def register_teacher():
        data = request.get_json(silent=True) or {}
        errors = FieldErrors()
        fields = check_account_fields(errors, data)
        errors.raise_if_any()

        user = container.registration_service.register_teacher(**fields)
        return jsonify({"message": "Teacher registered successfully", "user": user.public_dict()}), 201

    @app.route("/api/v1/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = request.get_json(silent=True) or {}
        errors = FieldErrors()
        username = errors.check("username", require_non_empty, data.get("username"), "username")
        password = data.get("password")
        if not isinstance(password, str) or not password:
            errors.add("password", "password is required")
        errors.raise_if_any()

        result = container.auth_service.sign_in(username, password, client_context())
        return jsonify({"token": result.token, "user": result.user})

    @app.route("/api/v1/teachers/login-activity", methods=["GET"], endpoint="teacher_login_activity")
    @permission_required(Permission.VIEW_LOGIN_ACTIVITY)
    def teacher_login_activity():
        entries = container.auth_service.login_activity(current_claims().id)
        return jsonify({"login_activity": [e.to_dict() for e in entries], "total_count": len(entries)})
