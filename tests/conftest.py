"""
Quizora - test configuration and fixtures
"""
import os
from datetime import timedelta
from typing import Generator

import pytest

# Set testing environment before the app reads its settings
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from quizora.database import get_db
from quizora.database.base_class import Base
from quizora.main import app
from quizora.model.modules import Module
from quizora.model.questions import Question
from quizora.model.quizzes import Quiz, EligibilityCriterion
from quizora.model.users import User
from quizora.router.auth_util import create_access_token, get_password_hash
from quizora.timeutil import utcnow

PASSWORD = "Passw0rd!"

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=test_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """Fresh schema and session for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    """Test client with the database dependency pointed at the test session"""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db: Session):
    counter = {"n": 0}

    def _make_user(role: str = "student", **overrides) -> User:
        counter["n"] += 1
        n = counter["n"]
        fields = dict(
            user_id=f"{100000000000 + n}",
            email=f"{role}{n}@campus.lk",
            hashed_password=get_password_hash(PASSWORD),
            first_name=role.capitalize(),
            last_name=f"User{n}",
            role=role,
            is_active=True,
        )
        if role == "student":
            fields.update(degree_title="COM-101", current_year=2, current_semester=1)
        fields.update(overrides)
        user = User(**fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def admin(make_user) -> User:
    return make_user("admin")


@pytest.fixture()
def lecturer(make_user) -> User:
    return make_user("lecturer")


@pytest.fixture()
def student(make_user) -> User:
    return make_user("student")


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture()
def admin_headers(admin: User) -> dict:
    return bearer(admin)


@pytest.fixture()
def lecturer_headers(lecturer: User) -> dict:
    return bearer(lecturer)


@pytest.fixture()
def student_headers(student: User) -> dict:
    return bearer(student)


@pytest.fixture()
def module(db: Session, lecturer: User) -> Module:
    module = Module(
        created_by=lecturer.user_id,
        module_code="IT2020",
        module_name="Software Engineering",
        module_year=2,
        module_semester=1,
        credits=4,
        description="Processes and practice",
    )
    db.add(module)
    db.commit()
    db.refresh(module)
    return module


@pytest.fixture()
def make_question(db: Session, lecturer: User, module: Module):
    def _make_question(question_type: str = "MCQ", **overrides) -> Question:
        fields = dict(
            created_by=lecturer.user_id,
            question_type=question_type,
            question_text=f"A {question_type} question",
            options=[
                {"text": "Right", "is_correct": True},
                {"text": "Wrong", "is_correct": False},
            ] if question_type == "MCQ" else [],
            answer="" if question_type == "MCQ" else "Model answer",
            equations=[],
            tags=["basics"],
            module_code=module.module_code,
            module_year=module.module_year,
            module_semester=module.module_semester,
            difficulty="Medium",
        )
        fields.update(overrides)
        question = Question(**fields)
        db.add(question)
        db.commit()
        db.refresh(question)
        return question

    return _make_question


@pytest.fixture()
def make_quiz(db: Session, lecturer: User, module: Module):
    """Insert a quiz directly, bypassing the 'start must be in the future' rule."""
    def _make_quiz(start_offset: timedelta = timedelta(minutes=-5),
                   length: timedelta = timedelta(hours=1), **overrides) -> Quiz:
        now = utcnow()
        criteria = overrides.pop("criteria", [("COM-101", 2, 1)])
        fields = dict(
            title="Midterm",
            description="",
            module_id=module.module_id,
            module_code=module.module_code,
            module_year=module.module_year,
            module_semester=module.module_semester,
            duration=30,
            start_date_time=now + start_offset,
            end_date_time=now + start_offset + length,
            instructions="Answer everything",
            passcode="secret",
            question_count=1,
            created_by=lecturer.user_id,
        )
        fields.update(overrides)
        quiz = Quiz(**fields)
        quiz.eligibility_criteria = [
            EligibilityCriterion(degree_title=d, year=y, semester=s) for d, y, s in criteria
        ]
        if "status" not in overrides:
            quiz.update_status(now)
        db.add(quiz)
        db.commit()
        db.refresh(quiz)
        return quiz

    return _make_quiz
