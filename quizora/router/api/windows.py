from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from quizora.database import get_db
from quizora.model.users import User
from quizora.router.api.logics import window_logic
from quizora.router.dependencies import get_current_user, get_current_staff
from quizora.schema.window_schema import QuizWindowCreate, QuizWindowUpdate

router = APIRouter()


@router.post("/", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_window(
    request: QuizWindowCreate,
    db: Session = Depends(get_db),
    staff: User = Depends(get_current_staff),
):
    return window_logic.create_window_logic(db, request)


@router.get("/", response_model=dict, status_code=status.HTTP_200_OK)
async def list_windows(
    degree_title: Optional[str] = Query(None),
    year: Optional[int] = Query(None, ge=1, le=4),
    semester: Optional[int] = Query(None, ge=1, le=2),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return window_logic.list_windows_logic(db, degree_title, year, semester)


@router.get("/{window_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def get_window(
    window_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return window_logic.get_window_logic(db, window_id)


@router.put("/{window_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def update_window(
    window_id: int,
    request: QuizWindowUpdate,
    db: Session = Depends(get_db),
    staff: User = Depends(get_current_staff),
):
    return window_logic.update_window_logic(db, window_id, request)


@router.delete("/{window_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def delete_window(
    window_id: int,
    db: Session = Depends(get_db),
    staff: User = Depends(get_current_staff),
):
    return window_logic.delete_window_logic(db, window_id)
