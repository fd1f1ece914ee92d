from datetime import datetime
from typing import Dict, Any, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from quizora.model.quiz_windows import QuizWindow
from quizora.schema.window_schema import QuizWindowCreate, QuizWindowUpdate, QuizWindowOut
from quizora.timeutil import as_naive_utc


def serialize_window(window: QuizWindow) -> Dict[str, Any]:
    return QuizWindowOut.model_validate(window).model_dump()


def _get_window_or_404(db: Session, window_id: int) -> QuizWindow:
    window = db.query(QuizWindow).filter(QuizWindow.window_id == window_id).first()
    if not window:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz window not found")
    return window


def _check_times(start: datetime, end: datetime) -> None:
    if end <= start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End time must be after start time"
        )


def list_windows_logic(
    db: Session, degree_title: Optional[str], year: Optional[int], semester: Optional[int]
) -> Dict[str, Any]:
    query = db.query(QuizWindow)
    if degree_title:
        query = query.filter(QuizWindow.degree_title == degree_title)
    if year:
        query = query.filter(QuizWindow.year == year)
    if semester:
        query = query.filter(QuizWindow.semester == semester)
    windows = query.order_by(QuizWindow.start_time).all()
    return {"success": True, "windows": [serialize_window(w) for w in windows], "count": len(windows)}


def get_window_logic(db: Session, window_id: int) -> Dict[str, Any]:
    return {"success": True, "window": serialize_window(_get_window_or_404(db, window_id))}


def create_window_logic(db: Session, request: QuizWindowCreate) -> Dict[str, Any]:
    start = as_naive_utc(request.start_time)
    end = as_naive_utc(request.end_time)
    _check_times(start, end)

    window = QuizWindow(
        degree_title=request.degree_title.strip(),
        year=request.year,
        semester=request.semester,
        date=request.date,
        start_time=start,
        end_time=end,
        duration=request.duration,
    )
    db.add(window)
    db.commit()
    db.refresh(window)
    return {"success": True, "message": "Quiz window created successfully", "window": serialize_window(window)}


def update_window_logic(db: Session, window_id: int, request: QuizWindowUpdate) -> Dict[str, Any]:
    window = _get_window_or_404(db, window_id)
    changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}

    for field in ("start_time", "end_time"):
        if field in changes:
            changes[field] = as_naive_utc(changes[field])
    _check_times(changes.get("start_time", window.start_time), changes.get("end_time", window.end_time))

    for field, value in changes.items():
        setattr(window, field, value.strip() if isinstance(value, str) else value)
    db.commit()
    db.refresh(window)
    return {"success": True, "message": "Quiz window updated successfully", "window": serialize_window(window)}


def delete_window_logic(db: Session, window_id: int) -> Dict[str, Any]:
    window = _get_window_or_404(db, window_id)
    db.delete(window)
    db.commit()
    return {"success": True, "message": "Quiz window deleted successfully"}
