from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from quizora.database import get_db
from quizora.model.users import User
from quizora.router.api.logics import user_logic
from quizora.router.dependencies import get_current_admin, get_current_user
from quizora.schema.user_schema import UserCreate, UserUpdate, UserStatusUpdate, AdminPasswordReset

router = APIRouter()


@router.get("/stats", response_model=dict, status_code=status.HTTP_200_OK)
async def get_user_stats(
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    return user_logic.user_stats_logic(db)


@router.get("/degrees", response_model=dict, status_code=status.HTTP_200_OK)
async def get_degree_options(current_user: User = Depends(get_current_user)):
    return user_logic.degree_options_logic()


@router.get("/", response_model=dict, status_code=status.HTTP_200_OK)
async def list_users(
    role: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    """List users, newest first

    Args:
        role (str, optional): admin | lecturer | student, "all" for no filter
        is_active (bool, optional): filter by account state
        search (str, optional): matched against names, email and degree title
        page (int): 1-based page number
        limit (int): page size, at most 100

    Returns:
        dict: users and pagination info
    """
    return user_logic.list_users_logic(db, role, is_active, search, page, limit)


@router.post("/", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    return user_logic.create_user_logic(db, admin, request)


@router.get("/{user_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    return user_logic.get_user_logic(db, user_id)


@router.put("/{user_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def update_user(
    user_id: str,
    request: UserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    return user_logic.update_user_logic(db, admin, user_id, request)


@router.delete("/{user_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    return user_logic.delete_user_logic(db, admin, user_id)


@router.patch("/{user_id}/status", response_model=dict, status_code=status.HTTP_200_OK)
async def update_user_status(
    user_id: str,
    request: UserStatusUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    return user_logic.update_user_status_logic(db, admin, user_id, request)


@router.patch("/{user_id}/reset-password", response_model=dict, status_code=status.HTTP_200_OK)
async def reset_user_password(
    user_id: str,
    request: AdminPasswordReset,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    return user_logic.reset_user_password_logic(db, user_id, request)
