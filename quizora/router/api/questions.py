from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from quizora.database import get_db
from quizora.model.users import User
from quizora.router.api.logics import question_logic
from quizora.router.dependencies import get_current_lecturer
from quizora.schema.question_schema import QuestionCreate, QuestionUpdate

router = APIRouter()


@router.get("/stats", response_model=dict, status_code=status.HTTP_200_OK)
async def get_question_stats(
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return question_logic.question_stats_logic(db, lecturer)


@router.get("/modules", response_model=dict, status_code=status.HTTP_200_OK)
async def get_question_modules(
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return question_logic.question_modules_logic(db, lecturer)


@router.get("/module/{module_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def get_questions_by_module(
    module_id: int,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return question_logic.questions_by_module_logic(db, lecturer, module_id)


@router.get("/", response_model=dict, status_code=status.HTTP_200_OK)
async def list_questions(
    module_code: Optional[str] = Query(None),
    module_year: Optional[int] = Query(None, ge=1, le=4),
    module_semester: Optional[int] = Query(None, ge=1, le=2),
    type: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    """The lecturer's question bank, newest first

    Args:
        module_code, module_year, module_semester: narrow to one module
        type (str, optional): MCQ | Structured | Essay
        difficulty (str, optional): Easy | Medium | Hard
        search (str, optional): matched against the question text and tags
    """
    return question_logic.list_questions_logic(
        db, lecturer, module_code, module_year, module_semester, type, difficulty, search
    )


@router.post("/", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_question(
    request: QuestionCreate,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return question_logic.create_question_logic(db, lecturer, request)


@router.get("/{question_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def get_question(
    question_id: int,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return question_logic.get_question_logic(db, lecturer, question_id)


@router.put("/{question_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def update_question(
    question_id: int,
    request: QuestionUpdate,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return question_logic.update_question_logic(db, lecturer, question_id, request)


@router.delete("/{question_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def delete_question(
    question_id: int,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return question_logic.delete_question_logic(db, lecturer, question_id)
