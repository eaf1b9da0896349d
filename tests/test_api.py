# /tests/test_api.py

"""
End-to-end tests through the HTTP layer, using FastAPI's TestClient against
an app seeded with the demo data (admin/password, student/password and the
students ST10023 John Doe and ST10024 Jane Smith).
"""

import pytest
from fastapi.testclient import TestClient

from student_records.main import create_app
from student_records.services.database_helpers.student_repository_memory import StudentRepositoryMemory


@pytest.fixture
def client():
    app = create_app(repository=StudentRepositoryMemory(), seed_demo_data=True)
    with TestClient(app) as test_client:
        yield test_client


def login(client, username, password="password"):
    return client.post("/api/login", json={"username": username, "password": password})


@pytest.fixture
def admin_client(client):
    assert login(client, "admin").status_code == 200
    return client


@pytest.fixture
def student_client(client):
    assert login(client, "student").status_code == 200
    return client


NEW_STUDENT = {
    "studentId": "ST9999",
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "ada@example.com",
    "grade": 12,
}


# --- Health & Auth ---

def test_health_check(client):
    assert client.get("/").status_code == 200


def test_protected_routes_require_a_session(client):
    response = client.get("/api/students")
    assert response.status_code == 401
    assert response.json() == {"message": "Unauthorized"}
    assert client.get("/api/user").json() == {"message": "Not authenticated"}


def test_login_failures_are_indistinguishable(client):
    ghost = login(client, "ghost", "x")
    wrong = login(client, "admin", "wrong")
    assert ghost.status_code == wrong.status_code == 401
    assert ghost.json() == wrong.json() == {"message": "Invalid credentials"}


def test_login_returns_user_without_password(client):
    response = login(client, "admin")
    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "admin"
    assert body["role"] == "admin"
    assert body["lastLogin"] is not None
    assert not {"password", "passwordHash"} & body.keys()
    assert client.get("/api/user").json()["id"] == body["id"]


def test_login_with_missing_fields_is_a_validation_error(client):
    response = client.post("/api/login", json={"username": "admin"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request data"


def test_register_logs_the_new_user_in(client):
    response = client.post(
        "/api/register", json={"username": "newbie", "password": "secret1", "confirmPassword": "secret1"}
    )
    assert response.status_code == 201
    assert response.json()["role"] == "student"
    assert client.get("/api/user").json()["username"] == "newbie"


def test_register_rejects_taken_username_and_bad_payload(client):
    taken = client.post("/api/register", json={"username": "admin", "password": "secret1", "confirmPassword": "secret1"})
    assert taken.status_code == 400
    assert taken.json() == {"message": "Username already exists"}

    mismatch = client.post("/api/register", json={"username": "x", "password": "secret1", "confirmPassword": "secret2"})
    assert mismatch.status_code == 400
    assert mismatch.json()["errors"][0]["loc"] == ["confirmPassword"]


def test_logout_ends_the_session(admin_client):
    assert admin_client.post("/api/logout").status_code == 200
    assert admin_client.get("/api/user").status_code == 401


# --- Role-Based Access ---

def test_stats_are_admin_only(student_client):
    response = student_client.get("/api/stats")
    assert response.status_code == 403
    assert response.json() == {"message": "Forbidden - Admin access required"}


def test_students_can_read_but_not_write(student_client):
    assert student_client.get("/api/students").status_code == 200
    assert student_client.post("/api/students", json=NEW_STUDENT).status_code == 403
    assert student_client.delete("/api/students/1").status_code == 403


def test_stats_for_admin(admin_client):
    assert admin_client.get("/api/stats").json() == {
        "totalStudents": 2,
        "activeStudents": 2,
        "pendingApprovals": 0,
        "issuesReported": 0,
    }


# --- Students ---

def test_list_defaults_to_name_order(admin_client):
    names = [s["firstName"] for s in admin_client.get("/api/students").json()]
    assert names == ["Jane", "John"]


def test_list_with_filters(admin_client):
    response = admin_client.get("/api/students", params={"grade": 11, "search": "SMITH", "status": "all"})
    assert [s["studentId"] for s in response.json()] == ["ST10024"]

    paged = admin_client.get("/api/students", params={"page": 2, "limit": 1, "sort": "id_asc"})
    assert [s["studentId"] for s in paged.json()] == ["ST10024"]


@pytest.mark.parametrize("params", [{"grade": "ten"}, {"page": "x"}, {"limit": 0}, {"page": -1}])
def test_invalid_numeric_parameters_are_rejected(admin_client, params):
    response = admin_client.get("/api/students", params=params)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request parameters"


def test_enormous_page_number_is_an_empty_page(admin_client):
    response = admin_client.get("/api/students", params={"page": 10**15, "limit": 10**5})
    assert response.status_code == 200
    assert response.json() == []


def test_create_then_fetch(admin_client):
    response = admin_client.post("/api/students", json=NEW_STUDENT)
    assert response.status_code == 201
    created = response.json()
    assert created["status"] == "active"
    assert created["studentId"] == "ST9999"

    fetched = admin_client.get(f"/api/students/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == created


def test_create_with_invalid_fields_lists_them(admin_client):
    response = admin_client.post("/api/students", json={**NEW_STUDENT, "email": "nope", "grade": 0})
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid student data"
    assert {tuple(error["loc"]) for error in body["errors"]} == {("email",), ("grade",)}


def test_create_with_duplicate_code_conflicts(admin_client):
    response = admin_client.post("/api/students", json={**NEW_STUDENT, "studentId": "ST10023"})
    assert response.status_code == 409


def test_patch_changes_only_supplied_fields(admin_client):
    before = admin_client.get("/api/students/1").json()
    response = admin_client.patch("/api/students/1", json={"grade": 12, "status": "not-a-status"})
    assert response.status_code == 200
    after = response.json()
    assert after["grade"] == 12
    assert {k: v for k, v in after.items() if k != "grade"} == {k: v for k, v in before.items() if k != "grade"}


def test_patch_validates_supplied_fields(admin_client):
    response = admin_client.patch("/api/students/1", json={"email": "broken"})
    assert response.status_code == 400


def test_missing_student_is_404(admin_client):
    assert admin_client.get("/api/students/999").json() == {"message": "Student not found"}
    assert admin_client.patch("/api/students/999", json={"grade": 3}).status_code == 404
    assert admin_client.get("/api/students/abc").status_code == 400


def test_delete_then_delete_again(admin_client):
    assert admin_client.delete("/api/students/2").status_code == 204
    assert admin_client.delete("/api/students/2").status_code == 404
    assert admin_client.get("/api/stats").json()["totalStudents"] == 1


def test_export_csv(admin_client):
    response = admin_client.get("/api/students/export", params={"page": 1, "limit": 1})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0].split(",")[:3] == ["id", "studentId", "firstName"]
    # Pagination is ignored for exports.
    assert len(lines) == 3


def test_unexpected_errors_return_a_structured_500(mocker):
    repository = StudentRepositoryMemory()
    app = create_app(repository=repository, seed_demo_data=True)
    with TestClient(app, raise_server_exceptions=False) as client:
        assert login(client, "admin").status_code == 200
        mocker.patch.object(repository, "list_students", side_effect=RuntimeError("driver exploded"))
        response = client.get("/api/students")
    assert response.status_code == 500
    assert response.json() == {"message": "An unexpected error occurred. Please try again later."}
