from typing import Callable

from fastapi import Depends, status, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from quizora.constants import ADMIN, LECTURER, STUDENT
from quizora.database import get_db
from quizora.log import get_logger
from quizora.model.users import User
from quizora.router.auth_util import decode_token, ACCESS_TOKEN
from quizora.schema.auth_schema import TokenPayload

logger = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token(token: str = Depends(oauth2_scheme)) -> TokenPayload:
    try:
        payload = decode_token(token)
        token_data = TokenPayload(**payload)
    except (JWTError, ValidationError) as e:
        logger.info(f"Rejected bearer token: {e}")
        raise _credentials_exception() from e
    if token_data.type != ACCESS_TOKEN:
        raise _credentials_exception()
    return token_data


def get_current_user(
    db: Session = Depends(get_db), token: TokenPayload = Depends(get_token)
) -> User:
    user = db.query(User).filter(User.user_id == token.sub).first()
    if not user:
        raise _credentials_exception("User not found")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Account is not active"
        )
    return user


def require_role(*roles: str) -> Callable[..., User]:
    """Build a dependency that lets through only users holding one of ``roles``."""

    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )
        return current_user

    return _checker


get_current_admin = require_role(ADMIN)
get_current_lecturer = require_role(LECTURER)
get_current_student = require_role(STUDENT)
get_current_staff = require_role(LECTURER, ADMIN)
