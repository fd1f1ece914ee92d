from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, Integer, Text, JSON
from sqlalchemy.orm import relationship
from quizora.database.base_class import Base
from quizora.timeutil import utcnow


class Result(Base):
    __tablename__ = "results"

    result_id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # FK
    student_id = Column(String(12), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.quiz_id", ondelete="CASCADE"), nullable=False, index=True)
    module_id = Column(Integer, ForeignKey("modules.module_id"), nullable=False)
    lecturer_id = Column(String(12), ForeignKey("users.user_id"), nullable=False, index=True)

    # snapshot of names at submission time
    student_name = Column(String(512), nullable=False)
    student_email = Column(String(255), nullable=False)
    quiz_title = Column(String(255), nullable=False)
    module_code = Column(String(20), nullable=False)

    # attributes
    score = Column(Integer, nullable=False, default=0)
    total_marks = Column(Integer, nullable=False, default=0)
    percentage = Column(Integer, nullable=False, default=0)
    grade = Column(String(2), nullable=False)
    time_taken = Column(Integer, nullable=False, default=0)  # minutes
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    submission_type = Column(String(10), nullable=False, default="normal")
    created_at = Column(DateTime, default=utcnow, index=True)

    # relationship
    student = relationship("User", back_populates="results", foreign_keys=[student_id])
    quiz = relationship("Quiz", back_populates="results")
    answers = relationship("ResultAnswer", back_populates="result", cascade="all, delete-orphan")

    @property
    def correct_answers(self) -> int:
        return sum(1 for a in self.answers if a.is_correct)

    @property
    def correct_answer_rate(self) -> int:
        if not self.answers:
            return 0
        return round(self.correct_answers / len(self.answers) * 100)


class ResultAnswer(Base):
    __tablename__ = "result_answers"

    answer_id = Column(Integer, primary_key=True, autoincrement=True)
    result_id = Column(Integer, ForeignKey("results.result_id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.question_id"), nullable=False, index=True)

    question_text = Column(Text, nullable=False)
    question_type = Column(String(20), nullable=False)
    student_answer = Column(JSON, nullable=True)
    correct_answer = Column(Text, nullable=True)
    is_correct = Column(Boolean, default=False, nullable=False)
    marks = Column(Integer, default=0, nullable=False)
    max_marks = Column(Integer, default=1, nullable=False)

    result = relationship("Result", back_populates="answers")
