from typing import Optional

from pydantic import BaseModel, EmailStr


class Token(BaseModel):
    """Bearer access and refresh tokens"""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenPayload(BaseModel):
    """Payload for Bearer Access Token"""
    sub: str  # user id
    email: Optional[EmailStr] = None
    first_name: str
    role: str
    type: str = "access"
    exp: int
    iat: int


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    password: str
    confirm_password: Optional[str] = None


class PasswordCheck(BaseModel):
    password: str


class EmailCheck(BaseModel):
    email: EmailStr


###########
### OTP ###
###########
class PasswordChangeOtpRequest(BaseModel):
    current_password: str


class PasswordChangeOtpVerify(BaseModel):
    otp: str
    new_password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ForgotPasswordReset(BaseModel):
    email: EmailStr
    otp: str
    password: str
