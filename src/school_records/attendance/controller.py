from __future__ import annotations

from flask import Flask, jsonify, request

from ..auth.guards import permission_required
from ..common.pagination import PageRequest
from ..core.enums import Permission
from ..container import Container
from .service import parse_query


def register(app: Flask, container: Container) -> None:
    @app.route("/api/v1/teachers/students/<int:student_id>/attendance", methods=["POST"], endpoint="mark_attendance")
    @permission_required(Permission.MANAGE_ATTENDANCE)
    def mark_attendance(student_id: int):
        record = container.attendance_service.mark(student_id, request.get_json(silent=True) or {})
        return jsonify({"message": "Attendance recorded successfully", "attendance": record.to_dict()})

    @app.route(
        "/api/v1/teachers/students/<int:student_id>/attendance/today",
        methods=["GET"],
        endpoint="today_attendance",
    )
    @permission_required(Permission.MANAGE_ATTENDANCE)
    def today_attendance(student_id: int):
        record = container.attendance_service.today(student_id)
        return jsonify({"attendance": record.to_dict() if record else None})

    @app.route("/api/v1/teachers/attendance", methods=["GET"], endpoint="list_attendance")
    @permission_required(Permission.MANAGE_ATTENDANCE)
    def list_attendance():
        query = parse_query(request.args)
        page = PageRequest.from_args(request.args)
        return jsonify(container.attendance_service.list_records(query, page))
