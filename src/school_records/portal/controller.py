from __future__ import annotations

from flask import Flask, jsonify, request

from ..attendance.service import parse_query
from ..auth.guards import current_claims, roles_required
from ..common.pagination import PageRequest
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    portal = container.portal_service

    @app.route("/api/v1/student/profile", methods=["GET"], endpoint="student_profile")
    @roles_required(Role.STUDENT)
    def profile():
        return jsonify({"profile": portal.profile(current_claims().id)})

    @app.route("/api/v1/student/profile", methods=["PUT"], endpoint="student_update_profile")
    @roles_required(Role.STUDENT)
    def update_profile():
        updated = portal.update_profile(current_claims().id, request.get_json(silent=True) or {})
        return jsonify({"message": "Profile updated successfully", "profile": updated})

    @app.route("/api/v1/student/attendance", methods=["GET"], endpoint="student_attendance")
    @roles_required(Role.STUDENT)
    def attendance():
        query = parse_query(request.args, with_student=False)
        page = PageRequest.from_args(request.args)
        return jsonify(portal.attendance(current_claims().id, query, page))

    @app.route("/api/v1/student/attendance/stats", methods=["GET"], endpoint="student_attendance_stats")
    @roles_required(Role.STUDENT)
    def attendance_stats():
        return jsonify(portal.attendance_stats(current_claims().id))

    @app.route("/api/v1/student/login-activity", methods=["GET"], endpoint="student_login_activity")
    @roles_required(Role.STUDENT)
    def login_activity():
        return jsonify(portal.login_activity(current_claims().id))
