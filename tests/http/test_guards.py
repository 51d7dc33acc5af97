from __future__ import annotations

from school_records.auth.model import Claims
from school_records.auth.tokens import TokenService


def test_missing_token_is_401(client):
    resp = client.get("/api/v1/teachers/dashboard")

    assert resp.status_code == 401
    assert resp.get_json() == {
        "success": False,
        "error": {"message": "Access denied. No token provided.", "code": "AUTH_001"},
    }


def test_non_bearer_scheme_is_401(client):
    resp = client.get("/api/v1/teachers/dashboard", headers={"Authorization": "Basic abc"})

    assert resp.status_code == 401


def test_invalid_token_is_403(client):
    forged = TokenService(secret="someone-else").issue(Claims(id=1, username="x", role="teacher"))

    resp = client.get("/api/v1/teachers/dashboard", headers={"Authorization": f"Bearer {forged}"})

    assert resp.status_code == 403
    assert resp.get_json()["error"]["code"] == "AUTH_003"


def test_missing_permission_is_403(client, auth_header):
    headers = auth_header("teacher", permissions=["view_dashboard"])

    assert client.get("/api/v1/teachers/dashboard", headers=headers).status_code == 200
    resp = client.get("/api/v1/teachers/students", headers=headers)
    assert resp.status_code == 403
    assert resp.get_json()["error"] == {"message": "Access denied. Insufficient permissions.", "code": "AUTH_002"}


def test_student_routes_gate_on_role(client, auth_header):
    teacher = auth_header("teacher")
    student = auth_header("student")

    assert client.get("/api/v1/student/profile", headers=teacher).status_code == 403
    resp = client.get("/api/v1/student/profile", headers=student)
    assert resp.status_code == 200
    assert resp.get_json()["profile"]["first_name"] == "Pupil"


def test_student_cannot_reach_teacher_routes(client, auth_header):
    resp = client.get("/api/v1/teachers/students", headers=auth_header("student"))

    assert resp.status_code == 403
