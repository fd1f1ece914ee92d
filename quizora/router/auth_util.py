from datetime import timedelta
from typing import Any, Dict, Optional, Union
import random
import re

from jose import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from quizora.config import settings
from quizora.constants import PASSWORD_SPECIAL_CHARACTERS
from quizora.model.users import User
from quizora.timeutil import utcnow


pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS
)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

_SPECIAL_RE = re.compile("[" + re.escape(PASSWORD_SPECIAL_CHARACTERS) + "]")


def _create_token(user: User, token_type: str, expires_delta: timedelta) -> str:
    now = utcnow()
    to_encode = {
        "sub": str(user.user_id),
        "email": user.email,
        "first_name": user.first_name,
        "role": user.role,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """
    Creates an access token.

    Parameters:
        user (User): The user the token is issued for.
        expires_delta (timedelta, optional): The expiration time for the access token. Defaults to None.

    Returns:
        str: The encoded access token.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _create_token(user, ACCESS_TOKEN, expires_delta)


def create_refresh_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES)
    return _create_token(user, REFRESH_TOKEN, expires_delta)


def create_token_pair(user: User) -> Dict[str, str]:
    return {
        "access_token": create_access_token(user),
        "refresh_token": create_refresh_token(user),
        "token_type": "bearer",
    }


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT. Raises jose.JWTError when invalid or expired."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify if a plain password matches a hashed password.

    Parameters:
        plain_password (str): The plain password to be verified.
        hashed_password (str): The hashed password to compare with.

    Returns:
        bool: True if the plain password matches the hashed password, False otherwise.
    """
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Generate the hash value of a password.

    Parameters:
        password (str): The password to be hashed.

    Returns:
        str: The hash value of the password.
    """
    return pwd_context.hash(password)


def generate_unique_user_id(db: Session) -> str:
    while True:
        candidate = str(random.randint(10**11, 10**12 - 1))  # 12-digit number
        if not db.query(User).filter_by(user_id=candidate).first():
            return candidate


def generate_otp() -> str:
    return f"{random.SystemRandom().randint(0, 999999):06d}"


def password_checks(password: str) -> Dict[str, bool]:
    return {
        "length": len(password) >= 8,
        "uppercase": bool(re.search(r"[A-Z]", password)),
        "lowercase": bool(re.search(r"[a-z]", password)),
        "number": bool(re.search(r"\d", password)),
        "special": bool(_SPECIAL_RE.search(password)),
    }


def password_strength(password: str) -> Dict[str, Union[bool, str, Dict[str, bool]]]:
    """
    Score a password against the strength policy.

    Returns:
        dict: is_valid (all checks pass), the individual checks and a
        weak/medium/strong label.
    """
    checks = password_checks(password)
    score = sum(checks.values())
    if len(password) >= 12:
        score += 1
    if score <= 2:
        strength = "weak"
    elif score <= 4:
        strength = "medium"
    else:
        strength = "strong"
    return {"is_valid": all(checks.values()), "checks": checks, "strength": strength}


def is_strong_password(password: str) -> bool:
    return all(password_checks(password).values())


PASSWORD_POLICY_MESSAGE = (
    "Password must be at least 8 characters long and contain an uppercase letter, "
    "a lowercase letter, a number and a special character"
)
