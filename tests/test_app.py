from datetime import timedelta

from quizora.background_task import cleanup_verification_codes
from quizora.model.verification_codes import VerificationCode, PASSWORD_RESET, PASSWORD_CHANGE
from quizora.router.api.logics.quiz_logic import refresh_quiz_statuses
from quizora.timeutil import utcnow


def test_root(client):
    body = client.get("/").json()
    assert body["name"] == "Quizora"
    assert body["docs"] == "/docs"


def test_health(client):
    body = client.get("/api/health").json()
    assert body["success"] is True
    assert body["status"] == "healthy"


def test_validation_error_envelope(client):
    response = client.post("/api/auth/login", json={"email": "someone@campus.lk"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["errors"][0]["field"] == "password"


def test_http_error_envelope(client):
    response = client.get("/api/users/")
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Not authenticated"}


def test_cleanup_verification_codes(db):
    now = utcnow()
    db.add_all([
        VerificationCode(email="old@campus.lk", purpose=PASSWORD_RESET, code="111111",
                         expires_at=now - timedelta(minutes=1)),
        VerificationCode(email="new@campus.lk", purpose=PASSWORD_CHANGE, code="222222",
                         expires_at=now + timedelta(minutes=9)),
    ])
    db.commit()

    assert cleanup_verification_codes(db) == 1
    assert [v.email for v in db.query(VerificationCode).all()] == ["new@campus.lk"]


def test_refresh_quiz_statuses_at_given_time(db, make_quiz):
    quiz = make_quiz(start_offset=timedelta(hours=1))
    assert quiz.status == "scheduled"

    assert refresh_quiz_statuses(db, now=utcnow() + timedelta(minutes=90)) == {"activated": 1, "completed": 0}
    db.expire_all()
    assert quiz.status == "active"

    assert refresh_quiz_statuses(db, now=utcnow() + timedelta(hours=3)) == {"activated": 0, "completed": 1}
    db.expire_all()
    assert quiz.status == "completed"
