from datetime import timedelta
from typing import Dict, Any
import re

from fastapi import HTTPException, status
from jose import JWTError
from sqlalchemy.orm import Session

from quizora.config import settings
from quizora.constants import ADMIN
from quizora.log import get_logger
from quizora.model.users import User
from quizora.model.verification_codes import VerificationCode, PASSWORD_CHANGE, PASSWORD_RESET
from quizora.router.auth_util import (
    verify_password,
    get_password_hash,
    create_token_pair,
    decode_token,
    generate_otp,
    password_strength,
    is_strong_password,
    PASSWORD_POLICY_MESSAGE,
    REFRESH_TOKEN,
)
from quizora.router.aws_ses import send_otp_email, send_password_changed_email
from quizora.schema.auth_schema import (
    LoginRequest,
    RefreshRequest,
    ChangePasswordRequest,
    PasswordCheck,
    EmailCheck,
    PasswordChangeOtpRequest,
    PasswordChangeOtpVerify,
    ForgotPasswordRequest,
    ForgotPasswordReset,
)
from quizora.schema.user_schema import UserOut
from quizora.timeutil import utcnow

logger = get_logger(__name__)

OTP_PATTERN = re.compile(r"^\d{6}$")
FORGOT_PASSWORD_MESSAGE = "If your email is registered, you will receive an OTP code shortly"


def serialize_user(user: User) -> Dict[str, Any]:
    return UserOut.model_validate(user).model_dump()


def _ensure_strong_password(password: str) -> None:
    if not is_strong_password(password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=PASSWORD_POLICY_MESSAGE,
        )


def login_logic(db: Session, request: LoginRequest) -> Dict[str, Any]:
    """Authenticate a user by email and password.

    Args:
        db (Session): Database session
        request (LoginRequest): Login request with email and password

    Raises:
        HTTPException: 401 on unknown email or wrong password, 403 when the account is inactive

    Returns:
        Dict[str, Any]: The user profile plus an access/refresh token pair
    """
    user = db.query(User).filter(User.email == request.email.strip().lower()).first()

    if not user or not verify_password(request.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active"
        )

    user.last_login_time = utcnow()
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.user_id} ({user.role}) logged in")

    return {"success": True, "message": "Login successful", "user": serialize_user(user), **create_token_pair(user)}


def refresh_logic(db: Session, request: RefreshRequest) -> Dict[str, Any]:
    if not request.refresh_token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Refresh token is required"
        )
    try:
        payload = decode_token(request.refresh_token)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token"
        ) from e

    if payload.get("type") != REFRESH_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token"
        )

    user = db.query(User).filter(User.user_id == payload.get("sub")).first()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )

    return {"success": True, "message": "Token refreshed", **create_token_pair(user)}


def change_password_logic(db: Session, user: User, request: ChangePasswordRequest) -> Dict[str, Any]:
    """Change the current user's password after checking the old one.

    Raises:
        HTTPException: 400 when the current password is wrong, the new one is
            unchanged, does not match its confirmation or fails the strength policy
    """
    if not verify_password(request.current_password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )
    if request.confirm_password is not None and request.confirm_password != request.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Passwords do not match"
        )
    if verify_password(request.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password must be different from current password"
        )
    _ensure_strong_password(request.password)

    user.hashed_password = get_password_hash(request.password)
    db.commit()
    send_password_changed_email(user.email, user.first_name)
    return {"success": True, "message": "Password changed successfully"}


def validate_password_logic(request: PasswordCheck) -> Dict[str, Any]:
    return {"success": True, **password_strength(request.password)}


def check_email_logic(db: Session, request: EmailCheck) -> Dict[str, Any]:
    exists = db.query(User).filter(User.email == request.email.lower()).first() is not None
    return {"success": True, "exists": exists}


#############
### OTP's ###
#############
def _store_otp(db: Session, email: str, purpose: str) -> str:
    """Create or replace the OTP for (email, purpose), enforcing the resend cooldown.

    Raises:
        HTTPException: 429 when the previous code was issued less than the cooldown ago
    """
    now = utcnow()
    code = generate_otp()
    expires_at = now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)

    existing = db.query(VerificationCode).filter_by(email=email, purpose=purpose).first()
    if existing:
        elapsed = (now - existing.created_at).total_seconds()
        if elapsed < settings.OTP_RESEND_COOLDOWN_SECONDS:
            wait = int(settings.OTP_RESEND_COOLDOWN_SECONDS - elapsed) or 1
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"You can request another OTP in {wait} seconds"
            )
        existing.code = code
        existing.attempts = 0
        existing.expires_at = expires_at
        existing.created_at = now
    else:
        db.add(VerificationCode(
            email=email, purpose=purpose, code=code, attempts=0,
            expires_at=expires_at, created_at=now,
        ))
    db.commit()
    return code


def _discard_otp(db: Session, email: str, purpose: str) -> None:
    db.query(VerificationCode).filter_by(email=email, purpose=purpose).delete()
    db.commit()


def _check_otp(db: Session, email: str, purpose: str, otp: str) -> VerificationCode:
    """Verify a submitted OTP, counting failed attempts.

    Raises:
        HTTPException: 400 for a malformed, missing, expired, exhausted or wrong code
    """
    if not OTP_PATTERN.match(otp or ""):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please enter a valid 6-digit OTP"
        )

    record = db.query(VerificationCode).filter_by(email=email, purpose=purpose).first()
    if not record:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No OTP found. Please request a new one."
        )

    if record.expires_at < utcnow():
        db.delete(record)
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="OTP has expired. Please request a new one."
        )

    if record.code != otp:
        record.attempts += 1
        remaining = settings.OTP_MAX_ATTEMPTS - record.attempts
        if remaining <= 0:
            db.delete(record)
            db.commit()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Too many failed attempts. Please request a new OTP."
            )
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid OTP. {remaining} attempt(s) remaining."
        )

    return record


def request_password_change_otp_logic(
    db: Session, user: User, request: PasswordChangeOtpRequest
) -> Dict[str, Any]:
    """Email a password-change OTP to a student or lecturer.

    Raises:
        HTTPException: 400 for admins or a wrong current password, 429 inside
            the resend cooldown, 500 when the email cannot be delivered
    """
    if user.role == ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins should use the regular change password endpoint"
        )
    if not verify_password(request.current_password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    code = _store_otp(db, user.email, PASSWORD_CHANGE)
    if not send_otp_email(user.email, user.first_name, code, PASSWORD_CHANGE):
        _discard_otp(db, user.email, PASSWORD_CHANGE)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send OTP email. Please try again."
        )

    logger.info(f"Password change OTP issued for user {user.user_id}")
    return {"success": True, "message": "OTP sent to your email address"}


def verify_otp_and_change_password_logic(
    db: Session, user: User, request: PasswordChangeOtpVerify
) -> Dict[str, Any]:
    if user.role == ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins should use the regular change password endpoint"
        )
    _ensure_strong_password(request.new_password)

    record = _check_otp(db, user.email, PASSWORD_CHANGE, request.otp)

    if verify_password(request.new_password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password must be different from current password"
        )

    user.hashed_password = get_password_hash(request.new_password)
    db.delete(record)
    db.commit()
    send_password_changed_email(user.email, user.first_name)
    return {"success": True, "message": "Password changed successfully"}


def forgot_password_otp_logic(db: Session, request: ForgotPasswordRequest) -> Dict[str, Any]:
    """Issue a reset OTP. The response never reveals whether the email is registered."""
    email = request.email.lower()
    user = db.query(User).filter(User.email == email, User.is_active == True).first()

    if user:
        try:
            code = _store_otp(db, email, PASSWORD_RESET)
        except HTTPException as e:
            if e.status_code != status.HTTP_429_TOO_MANY_REQUESTS:
                raise
            logger.info(f"Reset OTP for {email} requested inside cooldown, not resent")
        else:
            if not send_otp_email(email, user.first_name, code, PASSWORD_RESET):
                logger.error(f"Failed to send forgot password OTP to {email}")

    return {"success": True, "message": FORGOT_PASSWORD_MESSAGE}


def verify_forgot_password_otp_logic(db: Session, request: ForgotPasswordReset) -> Dict[str, Any]:
    email = request.email.lower()
    _ensure_strong_password(request.password)

    record = _check_otp(db, email, PASSWORD_RESET, request.otp)

    user = db.query(User).filter(User.email == email).first()
    if not user or not user.is_active:
        db.delete(record)
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired OTP"
        )

    user.hashed_password = get_password_hash(request.password)
    db.delete(record)
    db.commit()
    send_password_changed_email(user.email, user.first_name)
    logger.info(f"Password reset via OTP for user {user.user_id}")
    return {"success": True, "message": "Password has been reset successfully"}
