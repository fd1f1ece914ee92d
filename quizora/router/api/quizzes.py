from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from quizora.database import get_db
from quizora.model.users import User
from quizora.router.api.logics import quiz_logic, analytics_logic
from quizora.router.dependencies import get_current_lecturer, get_current_student
from quizora.schema.quiz_schema import QuizCreate, QuizUpdate, PasscodeRequest, QuizSubmission

router = APIRouter()


################
### Lecturer ###
################
@router.get("/", response_model=dict, status_code=status.HTTP_200_OK)
async def list_quizzes(
    status_filter: Optional[str] = Query(None, alias="status"),
    module_code: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return quiz_logic.list_quizzes_logic(db, lecturer, status_filter, module_code)


@router.post("/", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_quiz(
    request: QuizCreate,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    """Schedule a new quiz

    Args:
        request (QuizCreate): module, dates, passcode, eligibility criteria and options
        db (Session): Database session
        lecturer (User): the quiz owner

    Raises:
        HTTPException: 404 unknown module, 400 invalid dates or an empty module

    Returns:
        dict: the created quiz
    """
    return quiz_logic.create_quiz_logic(db, lecturer, request)


@router.get("/stats", response_model=dict, status_code=status.HTTP_200_OK)
async def get_quiz_stats(
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return quiz_logic.quiz_stats_logic(db, lecturer)


@router.get("/analytics", response_model=dict, status_code=status.HTTP_200_OK)
async def get_analytics(
    module_code: Optional[str] = Query(None),
    time_range: Optional[str] = Query("30d"),
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return analytics_logic.analytics_logic(db, lecturer, module_code, time_range)


@router.post("/update-statuses", response_model=dict, status_code=status.HTTP_200_OK)
async def update_quiz_statuses(
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return quiz_logic.update_statuses_logic(db)


###############
### Student ###
###############
@router.get("/student/available", response_model=dict, status_code=status.HTTP_200_OK)
async def get_available_quizzes(
    db: Session = Depends(get_db),
    student: User = Depends(get_current_student),
):
    return quiz_logic.available_quizzes_logic(db, student)


@router.get("/student/results", response_model=dict, status_code=status.HTTP_200_OK)
async def get_student_results(
    db: Session = Depends(get_db),
    student: User = Depends(get_current_student),
):
    return quiz_logic.student_results_logic(db, student)


@router.post("/{quiz_id}/verify-passcode", response_model=dict, status_code=status.HTTP_200_OK)
async def verify_quiz_passcode(
    quiz_id: int,
    request: PasscodeRequest,
    db: Session = Depends(get_db),
    student: User = Depends(get_current_student),
):
    return quiz_logic.verify_passcode_logic(db, student, quiz_id, request)


@router.get("/{quiz_id}/questions", response_model=dict, status_code=status.HTTP_200_OK)
async def get_quiz_questions(
    quiz_id: int,
    db: Session = Depends(get_db),
    student: User = Depends(get_current_student),
):
    return quiz_logic.quiz_questions_logic(db, student, quiz_id)


@router.post("/{quiz_id}/submit", response_model=dict, status_code=status.HTTP_200_OK)
async def submit_quiz(
    quiz_id: int,
    request: QuizSubmission,
    db: Session = Depends(get_db),
    student: User = Depends(get_current_student),
):
    """Grade and store a submission

    Args:
        quiz_id (int): the quiz being submitted
        request (QuizSubmission): answers and the time the student started

    Returns:
        dict: score, total_marks, percentage, grade and time_taken
    """
    return quiz_logic.submit_quiz_logic(db, student, quiz_id, request)


################
### Lecturer ###
################
@router.get("/{quiz_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def get_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return quiz_logic.get_quiz_logic(db, lecturer, quiz_id)


@router.get("/{quiz_id}/editability", response_model=dict, status_code=status.HTTP_200_OK)
async def get_quiz_editability(
    quiz_id: int,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return quiz_logic.quiz_editability_logic(db, lecturer, quiz_id)


@router.get("/{quiz_id}/results", response_model=dict, status_code=status.HTTP_200_OK)
async def get_quiz_results(
    quiz_id: int,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return quiz_logic.quiz_results_logic(db, lecturer, quiz_id)


@router.put("/{quiz_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def update_quiz(
    quiz_id: int,
    request: QuizUpdate,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return quiz_logic.update_quiz_logic(db, lecturer, quiz_id, request)


@router.delete("/{quiz_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def delete_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return quiz_logic.delete_quiz_logic(db, lecturer, quiz_id)
