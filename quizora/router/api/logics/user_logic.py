from math import ceil
from typing import Dict, Any, Optional

from fastapi import HTTPException, status
from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from quizora.constants import STUDENT, DEGREE_CODES, DEGREE_OPTIONS, ROLES
from quizora.database.db import escape_like
from quizora.log import get_logger
from quizora.model.users import User
from quizora.router.api.logics.auth_logic import serialize_user
from quizora.router.auth_util import (
    get_password_hash,
    generate_unique_user_id,
    is_strong_password,
    PASSWORD_POLICY_MESSAGE,
)
from quizora.router.aws_ses import send_welcome_email
from quizora.schema.user_schema import UserCreate, UserUpdate, UserStatusUpdate, AdminPasswordReset

logger = get_logger(__name__)


def _validate_student_fields(degree_title: Optional[str], year: Optional[int], semester: Optional[int]) -> None:
    if not degree_title or not year or not semester:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Degree title, current year, and current semester are required for students"
        )
    if degree_title not in DEGREE_CODES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid degree title"
        )


def _get_user_or_404(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def list_users_logic(
    db: Session,
    role: Optional[str],
    is_active: Optional[bool],
    search: Optional[str],
    page: int,
    limit: int,
) -> Dict[str, Any]:
    query = db.query(User)
    if role and role != "all":
        query = query.filter(User.role == role)
    if is_active is not None:
        query = query.filter(User.is_active == is_active)
    if search:
        pattern = f"%{escape_like(search.strip().lower())}%"
        query = query.filter(or_(
            func.lower(User.first_name).like(pattern, escape="\\"),
            func.lower(User.last_name).like(pattern, escape="\\"),
            func.lower(User.email).like(pattern, escape="\\"),
            func.lower(User.degree_title).like(pattern, escape="\\"),
        ))

    total = query.count()
    users = (
        query.order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "success": True,
        "users": [serialize_user(u) for u in users],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": ceil(total / limit) if total else 0,
        },
    }


def create_user_logic(db: Session, admin: User, request: UserCreate) -> Dict[str, Any]:
    """Create a user of any role on behalf of an admin.

    Args:
        db (Session): Database session
        admin (User): The admin performing the action
        request (UserCreate): New user's details

    Raises:
        HTTPException: 400 on a weak password, missing/invalid student fields or a duplicate email

    Returns:
        Dict[str, Any]: The created user
    """
    email = request.email.lower()
    if request.role == STUDENT:
        _validate_student_fields(request.degree_title, request.current_year, request.current_semester)
    if not is_strong_password(request.password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=PASSWORD_POLICY_MESSAGE)
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists with this email"
        )

    is_student = request.role == STUDENT
    user = User(
        user_id=generate_unique_user_id(db),
        email=email,
        hashed_password=get_password_hash(request.password),
        first_name=request.first_name.strip(),
        last_name=request.last_name.strip(),
        role=request.role,
        degree_title=request.degree_title if is_student else None,
        current_year=request.current_year if is_student else None,
        current_semester=request.current_semester if is_student else None,
        is_active=True,
        created_by=admin.user_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Admin {admin.user_id} created {user.role} {user.user_id}")

    if not send_welcome_email(user.email, user.first_name, user.role):
        logger.warning(f"Welcome email could not be delivered to {user.email}")

    return {"success": True, "message": "User created successfully", "user": serialize_user(user)}


def get_user_logic(db: Session, user_id: str) -> Dict[str, Any]:
    return {"success": True, "user": serialize_user(_get_user_or_404(db, user_id))}


def update_user_logic(db: Session, admin: User, user_id: str, request: UserUpdate) -> Dict[str, Any]:
    user = _get_user_or_404(db, user_id)
    changes = request.model_dump(exclude_unset=True)

    if user_id == admin.user_id and changes.get("is_active") is False:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot change the status of your own account"
        )

    if "email" in changes and changes["email"] is not None:
        changes["email"] = changes["email"].lower()
        clash = db.query(User).filter(User.email == changes["email"], User.user_id != user_id).first()
        if clash:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already in use by another user"
            )

    new_role = changes.get("role") or user.role
    if new_role == STUDENT:
        _validate_student_fields(
            changes.get("degree_title", user.degree_title),
            changes.get("current_year", user.current_year),
            changes.get("current_semester", user.current_semester),
        )
    else:
        changes["degree_title"] = None
        changes["current_year"] = None
        changes["current_semester"] = None

    for field, value in changes.items():
        if value is None and field not in ("degree_title", "current_year", "current_semester"):
            continue
        setattr(user, field, value.strip() if field in ("first_name", "last_name") else value)

    db.commit()
    db.refresh(user)
    return {"success": True, "message": "User updated successfully", "user": serialize_user(user)}


def delete_user_logic(db: Session, admin: User, user_id: str) -> Dict[str, Any]:
    if user_id == admin.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )
    user = _get_user_or_404(db, user_id)
    user.is_active = False
    db.commit()
    logger.info(f"Admin {admin.user_id} deactivated user {user_id}")
    return {"success": True, "message": "User deleted successfully"}


def update_user_status_logic(db: Session, admin: User, user_id: str, request: UserStatusUpdate) -> Dict[str, Any]:
    if user_id == admin.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot change the status of your own account"
        )
    user = _get_user_or_404(db, user_id)
    user.is_active = request.is_active
    db.commit()
    db.refresh(user)
    state = "activated" if user.is_active else "deactivated"
    return {"success": True, "message": f"User {state} successfully", "user": serialize_user(user)}


def reset_user_password_logic(db: Session, user_id: str, request: AdminPasswordReset) -> Dict[str, Any]:
    user = _get_user_or_404(db, user_id)
    if not is_strong_password(request.new_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=PASSWORD_POLICY_MESSAGE)
    user.hashed_password = get_password_hash(request.new_password)
    db.commit()
    return {"success": True, "message": "Password reset successfully"}


def user_stats_logic(db: Session) -> Dict[str, Any]:
    rows = (
        db.query(
            User.role,
            func.count(User.user_id),
            func.sum(case((User.is_active == True, 1), else_=0)),
        )
        .group_by(User.role)
        .all()
    )
    by_role = {role: {"count": 0, "active": 0} for role in ROLES}
    for role, count, active in rows:
        by_role[role] = {"count": count, "active": int(active or 0)}

    return {
        "success": True,
        "stats": {
            "total": db.query(User).count(),
            "active": db.query(User).filter(User.is_active == True).count(),
            "by_role": by_role,
        },
    }


def degree_options_logic() -> Dict[str, Any]:
    return {"success": True, "degrees": DEGREE_OPTIONS}
