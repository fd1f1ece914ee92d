from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, Integer
from sqlalchemy.orm import relationship
from quizora.database.base_class import Base
from quizora.timeutil import utcnow


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(12), primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="student")

    # student only
    degree_title = Column(String(20), nullable=True)
    current_year = Column(Integer, nullable=True)
    current_semester = Column(Integer, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    last_login_time = Column(DateTime, nullable=True)
    created_by = Column(String(12), ForeignKey("users.user_id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    creator = relationship("User", remote_side=[user_id])
    modules = relationship("Module", back_populates="creator")
    quizzes = relationship("Quiz", back_populates="creator")
    results = relationship("Result", back_populates="student", foreign_keys="Result.student_id")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
