from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional
import random

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from quizora.config import settings
from quizora.constants import DEGREE_CODES, letter_grade
from quizora.log import get_logger
from quizora.model.modules import Module
from quizora.model.questions import Question
from quizora.model.quizzes import Quiz, EligibilityCriterion, ACTIVE_EDITABLE_FIELDS
from quizora.model.results import Result, ResultAnswer
from quizora.model.users import User
from quizora.router.api.logics.module_logic import get_owned_module, module_question_query
from quizora.schema.question_schema import StudentQuestionOut
from quizora.schema.quiz_schema import (
    QuizCreate,
    QuizUpdate,
    QuizOut,
    StudentQuizOut,
    PasscodeRequest,
    QuizSubmission,
    ResultOut,
    EligibilityCriterionIn,
)
from quizora.timeutil import utcnow, as_naive_utc

logger = get_logger(__name__)

ACTIVE_QUIZ_WARNING = "Quiz is currently active. Limited fields were updated."


def serialize_quiz(quiz: Quiz, now: Optional[datetime] = None) -> Dict[str, Any]:
    data = QuizOut.model_validate(quiz).model_dump()
    data["status"] = quiz.current_status(now)
    return data


def serialize_student_quiz(quiz: Quiz, now: Optional[datetime] = None) -> Dict[str, Any]:
    data = StudentQuizOut.model_validate(quiz).model_dump()
    data["status"] = quiz.current_status(now)
    return data


def serialize_result(result: Result) -> Dict[str, Any]:
    data = ResultOut.model_validate(result).model_dump()
    data["total_questions"] = len(result.answers)
    data["correct_answers"] = result.correct_answers
    data["correct_answer_rate"] = result.correct_answer_rate
    return data


def _get_owned_quiz(db: Session, lecturer: User, quiz_id: int) -> Quiz:
    quiz = db.query(Quiz).filter(
        Quiz.quiz_id == quiz_id,
        Quiz.created_by == lecturer.user_id,
        Quiz.is_active == True,
    ).first()
    if not quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    return quiz


def _build_criteria(criteria: List[EligibilityCriterionIn]) -> List[EligibilityCriterion]:
    if not criteria:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one eligibility criterion is required"
        )
    rows, seen = [], set()
    for c in criteria:
        degree_title = c.degree_title.strip()
        if degree_title not in DEGREE_CODES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid degree title in eligibility criteria: {degree_title}"
            )
        key = (degree_title, c.year, c.semester)
        if key in seen:
            continue
        seen.add(key)
        rows.append(EligibilityCriterion(degree_title=degree_title, year=c.year, semester=c.semester))
    return rows


def _check_dates(start: datetime, end: datetime, now: datetime, start_changed: bool = True) -> None:
    if start_changed and start <= now:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Start date must be in the future"
        )
    if end <= start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End date must be after start date"
        )


#################
### Lecturer ###
#################
def list_quizzes_logic(
    db: Session, lecturer: User, quiz_status: Optional[str], module_code: Optional[str]
) -> Dict[str, Any]:
    query = db.query(Quiz).filter(Quiz.created_by == lecturer.user_id, Quiz.is_active == True)
    if module_code:
        query = query.filter(Quiz.module_code == module_code.strip().upper())
    quizzes = query.order_by(Quiz.created_at.desc(), Quiz.quiz_id.desc()).all()

    now = utcnow()
    if quiz_status and quiz_status != "all":
        quizzes = [q for q in quizzes if q.current_status(now) == quiz_status]
    return {"success": True, "quizzes": [serialize_quiz(q, now) for q in quizzes], "count": len(quizzes)}


def create_quiz_logic(db: Session, lecturer: User, request: QuizCreate) -> Dict[str, Any]:
    """Schedule a quiz over one of the lecturer's modules.

    Args:
        db (Session): Database session
        lecturer (User): Owner of the module and the new quiz
        request (QuizCreate): Quiz settings, dates and eligibility criteria

    Raises:
        HTTPException: 404 when the module is not the lecturer's, 400 for bad
            dates, an empty module or missing/invalid eligibility criteria

    Returns:
        Dict[str, Any]: The created quiz
    """
    module = get_owned_module(db, lecturer, request.module_id)

    now = utcnow()
    start = as_naive_utc(request.start_date_time)
    end = as_naive_utc(request.end_date_time)
    _check_dates(start, end, now)

    question_count = module_question_query(
        db, lecturer.user_id, module.module_code, module.module_year, module.module_semester
    ).count()
    if question_count == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No questions found for this module. Add questions before creating a quiz."
        )

    quiz = Quiz(
        title=request.title.strip(),
        description=request.description.strip(),
        module_id=module.module_id,
        module_code=module.module_code,
        module_year=module.module_year,
        module_semester=module.module_semester,
        duration=request.duration,
        start_date_time=start,
        end_date_time=end,
        instructions=request.instructions.strip(),
        passcode=request.passcode.strip(),
        eligibility_criteria=_build_criteria(request.eligibility_criteria),
        shuffle_questions=request.shuffle_questions,
        show_results_immediately=request.show_results_immediately,
        allow_late_submission=request.allow_late_submission,
        max_attempts=request.max_attempts,
        question_count=question_count,
        created_by=lecturer.user_id,
    )
    quiz.update_status(now)
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    logger.info(f"Lecturer {lecturer.user_id} created quiz {quiz.quiz_id} for {module.module_code}")
    return {"success": True, "message": "Quiz created successfully", "quiz": serialize_quiz(quiz, now)}


def quiz_stats_logic(db: Session, lecturer: User) -> Dict[str, Any]:
    quizzes = db.query(Quiz).filter(Quiz.created_by == lecturer.user_id, Quiz.is_active == True).all()
    now = utcnow()
    counts = {"scheduled": 0, "active": 0, "completed": 0, "cancelled": 0}
    for quiz in quizzes:
        counts[quiz.current_status(now)] += 1

    module_rows = (
        db.query(Quiz.module_code, func.count(Quiz.quiz_id))
        .filter(Quiz.created_by == lecturer.user_id, Quiz.is_active == True)
        .group_by(Quiz.module_code)
        .order_by(Quiz.module_code)
        .all()
    )
    return {
        "success": True,
        "stats": {
            "total_quizzes": len(quizzes),
            **counts,
            "module_stats": [{"module_code": code, "count": count} for code, count in module_rows],
        },
    }


def get_quiz_logic(db: Session, lecturer: User, quiz_id: int) -> Dict[str, Any]:
    return {"success": True, "quiz": serialize_quiz(_get_owned_quiz(db, lecturer, quiz_id))}


def quiz_editability_logic(db: Session, lecturer: User, quiz_id: int) -> Dict[str, Any]:
    quiz = _get_owned_quiz(db, lecturer, quiz_id)
    now = utcnow()

    if quiz.status == "cancelled":
        editability = {
            "can_edit": False,
            "can_delete": True,
            "restrictions": ["Quiz has been cancelled - editing disabled"],
            "status": "cancelled",
        }
    elif quiz.has_ended(now) or quiz.status == "completed":
        editability = {
            "can_edit": False,
            "can_delete": True,
            "restrictions": ["Quiz has ended - editing disabled"],
            "status": "ended",
        }
    elif quiz.is_running(now):
        editability = {
            "can_edit": True,
            "can_delete": True,
            "restrictions": ["Only end time, late submission, and instructions can be modified"],
            "status": "active",
            "allowed_fields": list(ACTIVE_EDITABLE_FIELDS),
        }
    else:
        editability = {
            "can_edit": True,
            "can_delete": True,
            "restrictions": [],
            "status": "scheduled",
        }

    return {
        "success": True,
        "editability": editability,
        "quiz": {
            "quiz_id": quiz.quiz_id,
            "title": quiz.title,
            "start_date_time": quiz.start_date_time,
            "end_date_time": quiz.end_date_time,
            "status": quiz.current_status(now),
        },
    }


def update_quiz_logic(db: Session, lecturer: User, quiz_id: int, request: QuizUpdate) -> Dict[str, Any]:
    """Apply a partial update, limited to a few fields while the quiz is running.

    Raises:
        HTTPException: 400 when the quiz has ended, when a running quiz is sent
            fields other than end time/late submission/instructions, or for bad dates
    """
    quiz = _get_owned_quiz(db, lecturer, quiz_id)
    now = utcnow()

    if quiz.status == "cancelled":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot edit a cancelled quiz"
        )
    if quiz.has_ended(now):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot edit quiz that has already ended"
        )

    changes = request.model_dump(exclude_unset=True)
    is_running = quiz.is_running(now)

    if is_running:
        invalid_fields = [field for field in changes if field not in ACTIVE_EDITABLE_FIELDS]
        if invalid_fields:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=(
                    "Quiz is currently active. Only these fields can be modified: "
                    f"{', '.join(ACTIVE_EDITABLE_FIELDS)}. Invalid fields: {', '.join(invalid_fields)}"
                )
            )
        if changes.get("end_date_time") is not None:
            new_end = as_naive_utc(changes["end_date_time"])
            if new_end <= now:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="New end date must be in the future for active quiz"
                )
            quiz.end_date_time = new_end
        if changes.get("allow_late_submission") is not None:
            quiz.allow_late_submission = changes["allow_late_submission"]
        if changes.get("instructions") is not None:
            quiz.instructions = changes["instructions"].strip()
    else:
        changes = {k: v for k, v in changes.items() if v is not None}
        start = as_naive_utc(changes["start_date_time"]) if "start_date_time" in changes else quiz.start_date_time
        end = as_naive_utc(changes["end_date_time"]) if "end_date_time" in changes else quiz.end_date_time
        _check_dates(start, end, now, start_changed="start_date_time" in changes)
        quiz.start_date_time = start
        quiz.end_date_time = end

        if "eligibility_criteria" in changes:
            quiz.eligibility_criteria = _build_criteria(request.eligibility_criteria)
        for field in ("title", "description", "instructions", "passcode"):
            if field in changes:
                setattr(quiz, field, changes[field].strip())
        for field in ("duration", "shuffle_questions", "show_results_immediately",
                      "allow_late_submission", "max_attempts"):
            if field in changes:
                setattr(quiz, field, changes[field])

    quiz.update_status(now)
    db.commit()
    db.refresh(quiz)
    return {
        "success": True,
        "message": "Quiz updated successfully",
        "quiz": serialize_quiz(quiz, now),
        "warning": ACTIVE_QUIZ_WARNING if is_running else None,
    }


def delete_quiz_logic(db: Session, lecturer: User, quiz_id: int) -> Dict[str, Any]:
    quiz = _get_owned_quiz(db, lecturer, quiz_id)

    # a quiz that is already cancelled is removed on the second delete
    if quiz.status != "cancelled" and quiz.is_running():
        quiz.status = "cancelled"
        db.commit()
        logger.info(f"Active quiz {quiz_id} cancelled by {lecturer.user_id}")
        return {
            "success": True,
            "message": "Active quiz has been cancelled",
            "warning": "Students currently taking the quiz will not be able to submit.",
        }

    quiz.is_active = False
    db.commit()
    return {"success": True, "message": "Quiz deleted successfully"}


def quiz_results_logic(db: Session, lecturer: User, quiz_id: int) -> Dict[str, Any]:
    quiz = db.query(Quiz).filter(Quiz.quiz_id == quiz_id, Quiz.created_by == lecturer.user_id).first()
    if not quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")

    results = (
        db.query(Result)
        .filter(Result.quiz_id == quiz_id, Result.lecturer_id == lecturer.user_id)
        .order_by(Result.percentage.desc(), Result.created_at)
        .all()
    )
    return {"success": True, "results": [serialize_result(r) for r in results], "count": len(results)}


def refresh_quiz_statuses(db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
    """Move scheduled quizzes to active and active ones to completed as the clock passes them.

    Scheduled quizzes whose whole window has already passed go straight to completed.
    Cancelled quizzes are never touched.

    Returns:
        dict: number of quizzes activated and completed
    """
    now = now or utcnow()
    base = db.query(Quiz).filter(Quiz.is_active == True)

    activated = base.filter(
        Quiz.status == "scheduled",
        Quiz.start_date_time <= now,
        Quiz.end_date_time > now,
    ).update({Quiz.status: "active"}, synchronize_session=False)

    completed = base.filter(
        Quiz.status.in_(("scheduled", "active")),
        Quiz.end_date_time <= now,
    ).update({Quiz.status: "completed"}, synchronize_session=False)

    db.commit()
    if activated or completed:
        logger.info(f"Quiz status refresh: {activated} activated, {completed} completed")
    return {"activated": activated, "completed": completed}


def update_statuses_logic(db: Session) -> Dict[str, Any]:
    counts = refresh_quiz_statuses(db)
    return {"success": True, "message": "Quiz statuses updated", **counts}


###############
### Student ###
###############
def _attempts_taken(db: Session, student: User, quiz: Quiz) -> int:
    return db.query(Result).filter(Result.student_id == student.user_id, Result.quiz_id == quiz.quiz_id).count()


def _get_student_quiz(db: Session, quiz_id: int) -> Quiz:
    quiz = db.query(Quiz).filter(Quiz.quiz_id == quiz_id, Quiz.is_active == True).first()
    if not quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    return quiz


def _check_student_access(quiz: Quiz, student: User, now: datetime) -> None:
    """Cancelled, eligibility and time-window checks shared by every student operation."""
    if quiz.status == "cancelled":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This quiz has been cancelled by the instructor"
        )
    if not quiz.accepts(student.degree_title, student.current_year, student.current_semester):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not eligible for this quiz"
        )
    if now < quiz.start_date_time:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quiz has not started yet")
    if now > quiz.end_date_time:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quiz has ended")


def available_quizzes_logic(db: Session, student: User) -> Dict[str, Any]:
    quizzes = (
        db.query(Quiz)
        .join(EligibilityCriterion, EligibilityCriterion.quiz_id == Quiz.quiz_id)
        .filter(
            Quiz.is_active == True,
            EligibilityCriterion.degree_title == student.degree_title,
            EligibilityCriterion.year == student.current_year,
            EligibilityCriterion.semester == student.current_semester,
        )
        .order_by(Quiz.start_date_time)
        .distinct()
        .all()
    )
    now = utcnow()
    available = []
    for quiz in quizzes:
        if quiz.current_status(now) not in ("scheduled", "active"):
            continue
        data = serialize_student_quiz(quiz, now)
        data["attempts_taken"] = _attempts_taken(db, student, quiz)
        available.append(data)
    return {"success": True, "quizzes": available, "count": len(available)}


def verify_passcode_logic(db: Session, student: User, quiz_id: int, request: PasscodeRequest) -> Dict[str, Any]:
    """Gate a student into a quiz.

    Checks run in order: existence (404), cancellation (400), eligibility
    (403), time window (400), passcode (401) and remaining attempts (400).
    """
    quiz = _get_student_quiz(db, quiz_id)
    now = utcnow()
    _check_student_access(quiz, student, now)

    if (request.passcode or "").strip() != quiz.passcode.strip():
        logger.info(f"Student {student.user_id} entered a wrong passcode for quiz {quiz_id}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid passcode")

    if _attempts_taken(db, student, quiz) >= quiz.max_attempts:
        previous = (
            db.query(Result)
            .filter(Result.student_id == student.user_id, Result.quiz_id == quiz.quiz_id)
            .order_by(Result.created_at.desc())
            .first()
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "You have already taken this quiz",
                "result": {
                    "score": previous.score,
                    "total_marks": previous.total_marks,
                    "percentage": previous.percentage,
                    "grade": previous.grade,
                },
            },
        )

    return {"success": True, "message": "Passcode verified successfully", "quiz": serialize_student_quiz(quiz, now)}


def _quiz_questions(db: Session, quiz: Quiz) -> List[Question]:
    return (
        module_question_query(db, quiz.created_by, quiz.module_code, quiz.module_year, quiz.module_semester)
        .order_by(Question.question_id)
        .all()
    )


def quiz_questions_logic(db: Session, student: User, quiz_id: int) -> Dict[str, Any]:
    quiz = _get_student_quiz(db, quiz_id)
    _check_student_access(quiz, student, utcnow())

    if _attempts_taken(db, student, quiz) >= quiz.max_attempts:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You have already taken this quiz")

    questions = _quiz_questions(db, quiz)
    if quiz.shuffle_questions:
        random.shuffle(questions)

    return {
        "success": True,
        "quiz_id": quiz.quiz_id,
        "duration": quiz.duration,
        "questions": [StudentQuestionOut.model_validate(q).model_dump() for q in questions],
        "count": len(questions),
    }


def _grade_answer(question: Question, answer: Any) -> ResultAnswer:
    """Auto-grade one answer. MCQs match the correct option text; other types wait for manual marking."""
    max_marks = 1
    is_correct = False
    if question.question_type == "MCQ":
        correct_answer = question.correct_option_text
        if isinstance(answer, str) and correct_answer is not None:
            is_correct = answer.strip() == correct_answer.strip()
    else:
        correct_answer = question.answer

    return ResultAnswer(
        question_id=question.question_id,
        question_text=question.question_text,
        question_type=question.question_type,
        student_answer=answer,
        correct_answer=correct_answer,
        is_correct=is_correct,
        marks=max_marks if is_correct else 0,
        max_marks=max_marks,
    )


def submit_quiz_logic(db: Session, student: User, quiz_id: int, request: QuizSubmission) -> Dict[str, Any]:
    """Grade and store a student's submission.

    The student's deadline is min(start + duration, quiz end) plus a grace
    period. When the quiz allows late submission, a submission after the quiz
    end is accepted against start + duration alone and recorded as late. The
    claimed start must lie inside the quiz window, so the late allowance can
    never exceed one duration past the quiz end.

    Raises:
        HTTPException: 404 missing quiz, 403 not eligible, 400 when cancelled,
            out of attempts, outside the window or past the deadline
    """
    quiz = _get_student_quiz(db, quiz_id)
    now = utcnow()

    if quiz.status == "cancelled":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This quiz has been cancelled by the instructor"
        )
    if not quiz.accepts(student.degree_title, student.current_year, student.current_semester):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not eligible for this quiz")
    if _attempts_taken(db, student, quiz) >= quiz.max_attempts:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quiz already submitted")

    is_late = now > quiz.end_date_time
    if now < quiz.start_date_time or (is_late and not quiz.allow_late_submission):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Quiz submission outside allowed time period"
        )

    student_start = as_naive_utc(request.start_time)
    grace = timedelta(seconds=settings.SUBMISSION_GRACE_SECONDS)
    if (
        student_start < quiz.start_date_time - grace
        or student_start > quiz.end_date_time
        or student_start > now + grace
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Quiz start time must fall within the quiz window"
        )
    personal_end = student_start + timedelta(minutes=quiz.duration)
    deadline = personal_end if is_late else min(personal_end, quiz.end_date_time)
    if now > deadline + grace:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Quiz submission time exceeded. Quiz has been auto-submitted."
        )

    time_taken = max(0, round((now - student_start).total_seconds() / 60))

    questions = {q.question_id: q for q in _quiz_questions(db, quiz)}
    graded, seen = [], set()
    for submitted in request.answers:
        question = questions.get(submitted.question_id)
        if question is None or submitted.question_id in seen:
            logger.debug(f"Skipping answer for unknown question {submitted.question_id}")
            continue
        seen.add(submitted.question_id)
        graded.append(_grade_answer(question, submitted.answer))

    score = sum(a.marks for a in graded)
    total_marks = sum(a.max_marks for a in graded)
    percentage = round(score / total_marks * 100) if total_marks > 0 else 0
    grade = letter_grade(percentage)

    result = Result(
        student_id=student.user_id,
        student_name=student.full_name,
        student_email=student.email,
        quiz_id=quiz.quiz_id,
        quiz_title=quiz.title,
        module_code=quiz.module_code,
        module_id=quiz.module_id,
        lecturer_id=quiz.created_by,
        score=score,
        total_marks=total_marks,
        percentage=percentage,
        grade=grade,
        time_taken=time_taken,
        start_time=student_start,
        end_time=now,
        submission_type="late" if is_late else "normal",
        answers=graded,
    )
    db.add(result)
    db.commit()
    db.refresh(result)
    logger.info(
        f"Student {student.user_id} submitted quiz {quiz_id}: {score}/{total_marks} ({percentage}%, {grade})"
    )

    return {
        "success": True,
        "message": "Quiz submitted successfully",
        "result": {
            "result_id": result.result_id,
            "score": score,
            "total_marks": total_marks,
            "percentage": percentage,
            "grade": grade,
            "time_taken": time_taken,
            "submission_type": result.submission_type,
        },
    }


def student_results_logic(db: Session, student: User) -> Dict[str, Any]:
    results = (
        db.query(Result)
        .filter(Result.student_id == student.user_id)
        .order_by(Result.created_at.desc(), Result.result_id.desc())
        .all()
    )
    return {"success": True, "results": [serialize_result(r) for r in results], "count": len(results)}
