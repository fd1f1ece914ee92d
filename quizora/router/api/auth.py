from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from quizora.database import get_db
from quizora.model.users import User
from quizora.router.api.logics import auth_logic
from quizora.router.dependencies import get_current_user
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

router = APIRouter()


@router.post("/login", response_model=dict, status_code=status.HTTP_200_OK)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Log in with email and password

    Args:
        request (LoginRequest): email and password
        db (Session): Database session

    Raises:
        HTTPException: 401 on bad credentials, 403 on an inactive account

    Returns:
        dict: user profile, access_token, refresh_token and token_type
    """
    return auth_logic.login_logic(db, request)


@router.post("/refresh", response_model=dict, status_code=status.HTTP_200_OK)
async def refresh(request: RefreshRequest, db: Session = Depends(get_db)):
    return auth_logic.refresh_logic(db, request)


@router.post("/logout", response_model=dict, status_code=status.HTTP_200_OK)
async def logout(current_user: User = Depends(get_current_user)):
    # tokens are stateless, the client drops them
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=dict, status_code=status.HTTP_200_OK)
async def me(current_user: User = Depends(get_current_user)):
    return {"success": True, "user": auth_logic.serialize_user(current_user)}


@router.put("/change-password", response_model=dict, status_code=status.HTTP_200_OK)
async def change_password(
    request: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return auth_logic.change_password_logic(db, current_user, request)


@router.post("/validate-password", response_model=dict, status_code=status.HTTP_200_OK)
async def validate_password(request: PasswordCheck):
    return auth_logic.validate_password_logic(request)


@router.post("/check-email", response_model=dict, status_code=status.HTTP_200_OK)
async def check_email(request: EmailCheck, db: Session = Depends(get_db)):
    return auth_logic.check_email_logic(db, request)


@router.post("/request-password-change-otp", response_model=dict, status_code=status.HTTP_200_OK)
async def request_password_change_otp(
    request: PasswordChangeOtpRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Email a 6-digit OTP that authorises a password change

    Admins are rejected inside the logic with a pointer to /change-password.
    """
    return auth_logic.request_password_change_otp_logic(db, current_user, request)


@router.post("/verify-otp-and-change-password", response_model=dict, status_code=status.HTTP_200_OK)
async def verify_otp_and_change_password(
    request: PasswordChangeOtpVerify,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return auth_logic.verify_otp_and_change_password_logic(db, current_user, request)


@router.post("/forgot-password-otp", response_model=dict, status_code=status.HTTP_200_OK)
async def forgot_password_otp(request: ForgotPasswordRequest, db: Session = Depends(get_db)):
    return auth_logic.forgot_password_otp_logic(db, request)


@router.post("/verify-forgot-password-otp", response_model=dict, status_code=status.HTTP_200_OK)
async def verify_forgot_password_otp(request: ForgotPasswordReset, db: Session = Depends(get_db)):
    return auth_logic.verify_forgot_password_otp_logic(db, request)
