from sqlalchemy import Column, String, DateTime, Integer, Date
from quizora.database.base_class import Base
from quizora.timeutil import utcnow


class QuizWindow(Base):
    __tablename__ = "quiz_windows"

    window_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    degree_title = Column(String(255), nullable=False)
    year = Column(Integer, nullable=False)
    semester = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
