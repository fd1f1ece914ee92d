from typing import Dict, Any, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from quizora.log import get_logger
from quizora.model.questions import Question
from quizora.model.users import User
from quizora.router.api.logics.module_logic import get_owned_module, module_question_query
from quizora.schema.question_schema import QuestionCreate, QuestionUpdate, QuestionOut

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = "Question not found or access denied"


def serialize_question(question: Question) -> Dict[str, Any]:
    return QuestionOut.model_validate(question).model_dump()


def _clean_options(question_type: str, options: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Validate MCQ options; returns the options to store (empty for non-MCQ)."""
    if question_type != "MCQ":
        return []
    options = [
        {"text": o["text"].strip(), "is_correct": bool(o.get("is_correct"))}
        for o in options
        if o.get("text") and o["text"].strip()
    ]
    if len(options) < 2:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="MCQ questions must have at least 2 options"
        )
    if not any(o["is_correct"] for o in options):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="MCQ questions must have at least one correct answer"
        )
    return options


def _clean_strings(values: List[str]) -> List[str]:
    return [v.strip() for v in values if v and v.strip()]


def _get_owned_question(db: Session, lecturer: User, question_id: int) -> Question:
    question = db.query(Question).filter(
        Question.question_id == question_id,
        Question.created_by == lecturer.user_id,
        Question.is_active == True,
    ).first()
    if not question:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)
    return question


def create_question_logic(db: Session, lecturer: User, request: QuestionCreate) -> Dict[str, Any]:
    """Create a question in the lecturer's bank.

    MCQ questions keep their options and drop the model answer, other types
    keep the answer and drop options.

    Raises:
        HTTPException: 400 when an MCQ has fewer than 2 options or no correct option
    """
    options = _clean_options(request.question_type, [o.model_dump() for o in request.options])
    is_mcq = request.question_type == "MCQ"

    question = Question(
        created_by=lecturer.user_id,
        question_type=request.question_type,
        question_text=request.question_text.strip(),
        options=options,
        answer="" if is_mcq else request.answer.strip(),
        image=request.image,
        equations=_clean_strings(request.equations),
        tags=_clean_strings(request.tags),
        module_code=request.module_code,
        module_year=request.module_year,
        module_semester=request.module_semester,
        difficulty=request.difficulty,
    )
    db.add(question)
    db.commit()
    db.refresh(question)
    logger.info(f"Lecturer {lecturer.user_id} created {question.question_type} question {question.question_id}")
    return {"success": True, "message": "Question created successfully", "question": serialize_question(question)}


def list_questions_logic(
    db: Session,
    lecturer: User,
    module_code: Optional[str] = None,
    module_year: Optional[int] = None,
    module_semester: Optional[int] = None,
    question_type: Optional[str] = None,
    difficulty: Optional[str] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    query = db.query(Question).filter(Question.created_by == lecturer.user_id, Question.is_active == True)
    if module_code:
        query = query.filter(Question.module_code == module_code.strip().upper())
    if module_year:
        query = query.filter(Question.module_year == module_year)
    if module_semester:
        query = query.filter(Question.module_semester == module_semester)
    if question_type:
        query = query.filter(Question.question_type == question_type)
    if difficulty:
        query = query.filter(Question.difficulty == difficulty)

    questions = query.order_by(Question.created_at.desc(), Question.question_id.desc()).all()

    if search:
        needle = search.strip().lower()
        questions = [
            q for q in questions
            if needle in q.question_text.lower()
            or any(needle in tag.lower() for tag in (q.tags or []))
        ]

    return {
        "success": True,
        "questions": [serialize_question(q) for q in questions],
        "count": len(questions),
    }


def questions_by_module_logic(db: Session, lecturer: User, module_id: int) -> Dict[str, Any]:
    module = get_owned_module(db, lecturer, module_id)
    questions = (
        module_question_query(db, lecturer.user_id, module.module_code, module.module_year, module.module_semester)
        .order_by(Question.created_at.desc(), Question.question_id.desc())
        .all()
    )
    return {
        "success": True,
        "module": {
            "module_id": module.module_id,
            "module_code": module.module_code,
            "module_name": module.module_name,
        },
        "questions": [serialize_question(q) for q in questions],
        "count": len(questions),
    }


def get_question_logic(db: Session, lecturer: User, question_id: int) -> Dict[str, Any]:
    return {"success": True, "question": serialize_question(_get_owned_question(db, lecturer, question_id))}


def update_question_logic(db: Session, lecturer: User, question_id: int, request: QuestionUpdate) -> Dict[str, Any]:
    question = _get_owned_question(db, lecturer, question_id)
    changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}

    question_type = changes.get("question_type", question.question_type)
    if question_type == "MCQ":
        options = changes.get("options", question.options or [])
        question.options = _clean_options(question_type, options)
        question.answer = ""
    else:
        question.options = []
        if "answer" in changes:
            question.answer = changes["answer"].strip()

    for field in ("question_type", "image", "module_code", "module_year", "module_semester", "difficulty"):
        if field in changes:
            setattr(question, field, changes[field])
    if "question_text" in changes:
        question.question_text = changes["question_text"].strip()
    if "equations" in changes:
        question.equations = _clean_strings(changes["equations"])
    if "tags" in changes:
        question.tags = _clean_strings(changes["tags"])

    db.commit()
    db.refresh(question)
    return {"success": True, "message": "Question updated successfully", "question": serialize_question(question)}


def delete_question_logic(db: Session, lecturer: User, question_id: int) -> Dict[str, Any]:
    question = _get_owned_question(db, lecturer, question_id)
    question.is_active = False
    db.commit()
    return {"success": True, "message": "Question deleted successfully"}


def question_stats_logic(db: Session, lecturer: User) -> Dict[str, Any]:
    rows = (
        db.query(
            Question.module_code,
            Question.module_year,
            Question.module_semester,
            Question.question_type,
            func.count(Question.question_id),
        )
        .filter(Question.created_by == lecturer.user_id, Question.is_active == True)
        .group_by(Question.module_code, Question.module_year, Question.module_semester, Question.question_type)
        .all()
    )

    per_module: Dict[tuple, Dict[str, Any]] = {}
    for code, year, semester, question_type, count in rows:
        entry = per_module.setdefault((code, year, semester), {
            "module_code": code,
            "module_year": year,
            "module_semester": semester,
            "total": 0,
            "MCQ": 0,
            "Structured": 0,
            "Essay": 0,
        })
        entry[question_type] = count
        entry["total"] += count

    modules = [per_module[key] for key in sorted(per_module)]
    return {
        "success": True,
        "stats": {
            "modules": modules,
            "total_questions": sum(m["total"] for m in modules),
        },
    }


def question_modules_logic(db: Session, lecturer: User) -> Dict[str, Any]:
    rows = (
        db.query(Question.module_code)
        .filter(Question.created_by == lecturer.user_id, Question.is_active == True)
        .distinct()
        .all()
    )
    return {"success": True, "modules": sorted(code for (code,) in rows)}
