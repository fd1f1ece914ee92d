from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from quizora.database.base_class import Base
from quizora.timeutil import utcnow


class Module(Base):
    __tablename__ = "modules"
    __table_args__ = (
        UniqueConstraint(
            "created_by", "module_code", "module_year", "module_semester",
            name="uq_module_per_lecturer_term",
        ),
    )

    module_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    created_by = Column(String(12), ForeignKey("users.user_id"), nullable=False, index=True)

    module_code = Column(String(20), nullable=False)
    module_name = Column(String(255), nullable=False)
    module_year = Column(Integer, nullable=False)
    module_semester = Column(Integer, nullable=False)
    credits = Column(Integer, nullable=False)
    description = Column(Text, nullable=False, default="")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    creator = relationship("User", back_populates="modules")
    quizzes = relationship("Quiz", back_populates="module")
