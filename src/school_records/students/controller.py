from __future__ import annotations

import os
import uuid

from flask import Flask, Response, jsonify, request, stream_with_context

from ..auth.guards import permission_required
from ..common.pagination import PageRequest
from ..core.constants import CSV_MIME_TYPE, CSV_UPLOAD_FIELD, EXPORT_FILENAME
from ..core.enums import Permission
from ..core.exceptions import DomainError, ErrorKind
from ..container import Container
from .service import parse_list_query


def save_upload(upload, upload_dir: str) -> str:
    """Store an uploaded CSV under a random name and return its path."""

    if upload is None or not upload.filename:
        raise DomainError(ErrorKind.FILE, "Please upload a CSV file")
    if upload.mimetype != CSV_MIME_TYPE:
        raise DomainError(ErrorKind.FILE, "Only CSV files are allowed")

    os.makedirs(upload_dir, exist_ok=True)
    path = os.path.join(upload_dir, f"{uuid.uuid4().hex}.csv")
    upload.save(path)
    return path


def register(app: Flask, container: Container) -> None:
    @app.route("/api/v1/teachers/dashboard", methods=["GET"], endpoint="teacher_dashboard")
    @permission_required(Permission.VIEW_DASHBOARD)
    def dashboard():
        return jsonify(container.student_service.dashboard().to_dict())

    @app.route("/api/v1/teachers/students", methods=["GET"], endpoint="list_students")
    @permission_required(Permission.MANAGE_STUDENTS)
    def list_students():
        query = parse_list_query(request.args)
        page = PageRequest.from_args(request.args)
        return jsonify(container.student_service.list_students(query, page))

    @app.route("/api/v1/teachers/students", methods=["POST"], endpoint="add_student")
    @permission_required(Permission.MANAGE_STUDENTS)
    def add_student():
        created = container.student_service.add_student(request.get_json(silent=True) or {})
        return jsonify({"message": "Student added successfully", "student": created.to_dict()}), 201

    @app.route("/api/v1/teachers/students/<int:student_id>", methods=["PUT"], endpoint="edit_student")
    @permission_required(Permission.MANAGE_STUDENTS)
    def edit_student(student_id: int):
        updated = container.student_service.edit_student(student_id, request.get_json(silent=True) or {})
        return jsonify({"message": "Student updated successfully", **updated})

    @app.route("/api/v1/teachers/students/<int:student_id>/deactivate", methods=["PUT"], endpoint="deactivate_student")
    @permission_required(Permission.MANAGE_STUDENTS)
    def deactivate_student(student_id: int):
        user = container.student_service.deactivate_student(student_id)
        return jsonify({"message": "Student deactivated successfully", "user": user})

    @app.route("/api/v1/teachers/students/upload", methods=["POST"], endpoint="upload_students")
    @permission_required(Permission.MANAGE_STUDENTS)
    def upload_students():
        path = save_upload(request.files.get(CSV_UPLOAD_FIELD), app.config["UPLOAD_DIR"])
        summary = container.student_importer.import_file(path)
        return jsonify({"message": "CSV file processed", **summary.to_dict()})

    @app.route("/api/v1/teachers/students/download", methods=["GET"], endpoint="download_students")
    @permission_required(Permission.MANAGE_STUDENTS)
    def download_students():
        lines = container.student_exporter.export(
            filter_by=request.args.get("filter_by") or None,
            filter_value=request.args.get("filter_value"),
        )
        return Response(
            stream_with_context(lines),
            mimetype=CSV_MIME_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
        )
