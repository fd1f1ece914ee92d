from sqlalchemy import Column, String, DateTime, Integer
from quizora.database.base_class import Base
from quizora.timeutil import utcnow

PASSWORD_CHANGE = "password_change"
PASSWORD_RESET = "password_reset"


class VerificationCode(Base):
    __tablename__ = "verification_codes"

    email = Column(String(255), primary_key=True, index=True)
    purpose = Column(String(20), primary_key=True)
    code = Column(String(8), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
