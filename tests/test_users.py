import pytest

from quizora.router.auth_util import verify_password
from tests.conftest import PASSWORD

STUDENT_PAYLOAD = {
    "first_name": "Nimal",
    "last_name": "Perera",
    "email": "nimal@campus.lk",
    "password": "Str0ng!Pass",
    "role": "student",
    "degree_title": "COM-103",
    "current_year": 3,
    "current_semester": 2,
}


class TestAccess:
    @pytest.mark.parametrize("path", ["/api/users/", "/api/users/stats"])
    def test_requires_token(self, client, path):
        assert client.get(path).status_code == 401

    @pytest.mark.parametrize("headers", ["lecturer_headers", "student_headers"])
    def test_non_admins_are_denied(self, client, request, headers):
        response = client.get("/api/users/", headers=request.getfixturevalue(headers))
        assert response.status_code == 403
        assert response.json()["message"] == "Access denied"

    def test_any_user_can_read_degrees(self, client, student_headers):
        response = client.get("/api/users/degrees", headers=student_headers)
        assert response.status_code == 200
        degrees = response.json()["degrees"]
        assert len(degrees) == 34
        assert degrees[0] == {
            "code": "COM-101",
            "title": "BSc (Hons) in Information Technology",
            "faculty": "Faculty of Computing",
        }


class TestCreateUser:
    def test_create_student(self, client, admin, admin_headers):
        response = client.post("/api/users/", json=STUDENT_PAYLOAD, headers=admin_headers)
        assert response.status_code == 201
        user = response.json()["user"]
        assert len(user["user_id"]) == 12 and user["user_id"].isdigit()
        assert user["degree_title"] == "COM-103"
        assert user["created_by"] == admin.user_id

    def test_created_user_can_log_in(self, client, admin_headers):
        client.post("/api/users/", json=STUDENT_PAYLOAD, headers=admin_headers)
        response = client.post("/api/auth/login", json={"email": "nimal@campus.lk", "password": "Str0ng!Pass"})
        assert response.status_code == 200

    def test_lecturer_ignores_student_fields(self, client, admin_headers):
        payload = {**STUDENT_PAYLOAD, "role": "lecturer", "email": "lec@campus.lk"}
        user = client.post("/api/users/", json=payload, headers=admin_headers).json()["user"]
        assert user["degree_title"] is None and user["current_year"] is None

    def test_student_fields_required(self, client, admin_headers):
        payload = {**STUDENT_PAYLOAD, "degree_title": None}
        response = client.post("/api/users/", json=payload, headers=admin_headers)
        assert response.status_code == 400

    def test_unknown_degree(self, client, admin_headers):
        response = client.post("/api/users/", json={**STUDENT_PAYLOAD, "degree_title": "XYZ-999"}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid degree title"

    def test_semester_range(self, client, admin_headers):
        response = client.post("/api/users/", json={**STUDENT_PAYLOAD, "current_semester": 3}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    def test_invalid_role(self, client, admin_headers):
        response = client.post("/api/users/", json={**STUDENT_PAYLOAD, "role": "dean"}, headers=admin_headers)
        assert response.status_code == 400

    def test_duplicate_email(self, client, admin_headers, student):
        response = client.post("/api/users/", json={**STUDENT_PAYLOAD, "email": student.email}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "User already exists with this email"

    def test_weak_password(self, client, admin_headers):
        response = client.post("/api/users/", json={**STUDENT_PAYLOAD, "password": "password"}, headers=admin_headers)
        assert response.status_code == 400

    def test_welcome_email_failure_does_not_fail_creation(self, client, admin_headers, monkeypatch):
        monkeypatch.setattr("quizora.router.api.logics.user_logic.send_welcome_email", lambda *a, **k: False)
        response = client.post("/api/users/", json=STUDENT_PAYLOAD, headers=admin_headers)
        assert response.status_code == 201


class TestListUsers:
    def test_search_treats_wildcards_literally(self, client, admin_headers, make_user):
        literal = make_user("student", last_name="Under_score")
        make_user("student", last_name="Underxscore")
        body = client.get("/api/users/?search=r_s", headers=admin_headers).json()
        assert [u["user_id"] for u in body["users"]] == [literal.user_id]

    def test_filters_and_pagination(self, client, admin_headers, make_user):
        for _ in range(3):
            make_user("student")
        make_user("lecturer", first_name="Kamal")

        body = client.get("/api/users/?role=student&limit=2&page=2", headers=admin_headers).json()
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
        assert len(body["users"]) == 1

        body = client.get("/api/users/?role=all&search=kamal", headers=admin_headers).json()
        assert [u["first_name"] for u in body["users"]] == ["Kamal"]

    def test_search_matches_degree(self, client, admin_headers, make_user):
        make_user("student", degree_title="ENG-201")
        body = client.get("/api/users/?search=eng-2", headers=admin_headers).json()
        assert body["pagination"]["total"] == 1

    def test_is_active_filter(self, client, admin_headers, make_user):
        make_user("student", is_active=False)
        body = client.get("/api/users/?is_active=false", headers=admin_headers).json()
        assert body["pagination"]["total"] == 1

    def test_limit_bounds(self, client, admin_headers):
        assert client.get("/api/users/?limit=101", headers=admin_headers).status_code == 400
        assert client.get("/api/users/?page=0", headers=admin_headers).status_code == 400


class TestManageUser:
    def test_get_user(self, client, admin_headers, student):
        assert client.get(f"/api/users/{student.user_id}", headers=admin_headers).json()["user"]["email"] == student.email

    def test_get_missing_user(self, client, admin_headers):
        response = client.get("/api/users/000000000000", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    def test_switching_away_from_student_clears_fields(self, client, admin_headers, student):
        response = client.put(f"/api/users/{student.user_id}", json={"role": "lecturer"}, headers=admin_headers)
        user = response.json()["user"]
        assert user["role"] == "lecturer"
        assert user["degree_title"] is None and user["current_semester"] is None

    def test_switching_to_student_requires_fields(self, client, admin_headers, lecturer):
        response = client.put(f"/api/users/{lecturer.user_id}", json={"role": "student"}, headers=admin_headers)
        assert response.status_code == 400

        response = client.put(
            f"/api/users/{lecturer.user_id}",
            json={"role": "student", "degree_title": "BUS-301", "current_year": 1, "current_semester": 1},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["user"]["degree_title"] == "BUS-301"

    def test_email_clash(self, client, admin_headers, student, lecturer):
        response = client.put(f"/api/users/{student.user_id}", json={"email": lecturer.email}, headers=admin_headers)
        assert response.status_code == 400

    def test_soft_delete(self, client, db, admin_headers, student):
        response = client.delete(f"/api/users/{student.user_id}", headers=admin_headers)
        assert response.status_code == 200
        db.refresh(student)
        assert student.is_active is False

    def test_cannot_delete_self(self, client, admin, admin_headers):
        response = client.delete(f"/api/users/{admin.user_id}", headers=admin_headers)
        assert response.status_code == 400

    def test_cannot_deactivate_self_through_update(self, client, db, admin, admin_headers):
        response = client.put(f"/api/users/{admin.user_id}", json={"is_active": False}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "You cannot change the status of your own account"
        db.refresh(admin)
        assert admin.is_active is True

    def test_admin_can_rename_self(self, client, admin, admin_headers):
        response = client.put(f"/api/users/{admin.user_id}", json={"first_name": "Root"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["user"]["first_name"] == "Root"

    def test_toggle_status(self, client, admin_headers, student):
        response = client.patch(f"/api/users/{student.user_id}/status", json={"is_active": False}, headers=admin_headers)
        assert response.json()["user"]["is_active"] is False
        login = client.post("/api/auth/login", json={"email": student.email, "password": PASSWORD})
        assert login.status_code == 403

    def test_deactivated_user_token_is_rejected(self, client, admin_headers, student, student_headers):
        client.patch(f"/api/users/{student.user_id}/status", json={"is_active": False}, headers=admin_headers)
        assert client.get("/api/auth/me", headers=student_headers).status_code == 403

    def test_reset_password(self, client, db, admin_headers, student):
        response = client.patch(
            f"/api/users/{student.user_id}/reset-password",
            json={"new_password": "Fresh!Pass9"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        db.refresh(student)
        assert verify_password("Fresh!Pass9", student.hashed_password)

    def test_stats(self, client, admin_headers, make_user):
        make_user("student")
        make_user("student", is_active=False)
        make_user("lecturer")

        stats = client.get("/api/users/stats", headers=admin_headers).json()["stats"]
        assert stats["total"] == 4
        assert stats["active"] == 3
        assert stats["by_role"]["student"] == {"count": 2, "active": 1}
        assert stats["by_role"]["admin"] == {"count": 1, "active": 1}
