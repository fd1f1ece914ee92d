from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, Integer, Text, JSON
from sqlalchemy.orm import relationship
from quizora.database.base_class import Base
from quizora.timeutil import utcnow

QUESTION_TYPES = ("MCQ", "Structured", "Essay")
DIFFICULTIES = ("Easy", "Medium", "Hard")


class Question(Base):
    __tablename__ = "questions"

    question_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    created_by = Column(String(12), ForeignKey("users.user_id"), nullable=False, index=True)

    # attributes
    question_type = Column(String(20), nullable=False)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False, default=list)  # [{"text": ..., "is_correct": ...}]
    answer = Column(Text, nullable=False, default="")
    image = Column(String(512), nullable=True)
    equations = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    difficulty = Column(String(10), nullable=False, default="Medium")

    # module the question belongs to
    module_code = Column(String(20), nullable=False, index=True)
    module_year = Column(Integer, nullable=False)
    module_semester = Column(Integer, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    creator = relationship("User")

    @property
    def correct_option_text(self):
        for option in self.options or []:
            if option.get("is_correct"):
                return option.get("text")
        return None
