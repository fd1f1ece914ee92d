from datetime import datetime
from typing import Optional

from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, Integer, Text
from sqlalchemy.orm import relationship
from quizora.database.base_class import Base
from quizora.timeutil import utcnow

QUIZ_STATUSES = ("scheduled", "active", "completed", "cancelled")
# fields a lecturer may still change while the quiz is running
ACTIVE_EDITABLE_FIELDS = ("end_date_time", "allow_late_submission", "instructions")


def status_at(start: datetime, end: datetime, now: datetime) -> str:
    if now < start:
        return "scheduled"
    if now <= end:
        return "active"
    return "completed"


class Quiz(Base):
    __tablename__ = "quizzes"

    quiz_id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # FK
    module_id = Column(Integer, ForeignKey("modules.module_id"), nullable=False)
    created_by = Column(String(12), ForeignKey("users.user_id"), nullable=False, index=True)

    # attributes
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    module_code = Column(String(20), nullable=False)
    module_year = Column(Integer, nullable=False)
    module_semester = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    start_date_time = Column(DateTime, nullable=False, index=True)
    end_date_time = Column(DateTime, nullable=False)
    instructions = Column(Text, nullable=False)
    passcode = Column(String(100), nullable=False)
    shuffle_questions = Column(Boolean, default=False, nullable=False)
    show_results_immediately = Column(Boolean, default=False, nullable=False)
    allow_late_submission = Column(Boolean, default=False, nullable=False)
    max_attempts = Column(Integer, default=1, nullable=False)
    question_count = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default="scheduled", nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # relationship
    module = relationship("Module", back_populates="quizzes")
    creator = relationship("User", back_populates="quizzes")
    eligibility_criteria = relationship(
        "EligibilityCriterion", back_populates="quiz", cascade="all, delete-orphan"
    )
    results = relationship("Result", back_populates="quiz")

    def current_status(self, now: Optional[datetime] = None) -> str:
        """Status as the clock sees it, without touching the stored column."""
        if self.status == "cancelled":
            return "cancelled"
        return status_at(self.start_date_time, self.end_date_time, now or utcnow())

    def update_status(self, now: Optional[datetime] = None) -> str:
        self.status = self.current_status(now)
        return self.status

    def is_running(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return self.start_date_time <= now <= self.end_date_time

    def has_ended(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > self.end_date_time

    def accepts(self, degree_title: str, year: int, semester: int) -> bool:
        return any(
            c.degree_title == degree_title and c.year == year and c.semester == semester
            for c in self.eligibility_criteria
        )


class EligibilityCriterion(Base):
    __tablename__ = "quiz_eligibility"

    criterion_id = Column(Integer, primary_key=True, autoincrement=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.quiz_id", ondelete="CASCADE"), nullable=False, index=True)
    degree_title = Column(String(20), nullable=False)
    year = Column(Integer, nullable=False)
    semester = Column(Integer, nullable=False)

    quiz = relationship("Quiz", back_populates="eligibility_criteria")
