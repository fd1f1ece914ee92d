from typing import Dict, Any, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from quizora.database.db import escape_like
from quizora.log import get_logger
from quizora.model.modules import Module
from quizora.model.questions import Question
from quizora.model.users import User
from quizora.schema.module_schema import ModuleCreate, ModuleUpdate, ModuleOut

logger = get_logger(__name__)

DUPLICATE_MODULE_MESSAGE = "Module with this code already exists for this year and semester"


def serialize_module(module: Module, question_count: Optional[int] = None) -> Dict[str, Any]:
    data = ModuleOut.model_validate(module).model_dump()
    if question_count is not None:
        data["question_count"] = question_count
    return data


def module_question_query(db: Session, lecturer_id: str, code: str, year: int, semester: int):
    """Active questions of a lecturer that belong to the module identified by code/year/semester."""
    return db.query(Question).filter(
        Question.created_by == lecturer_id,
        Question.module_code == code,
        Question.module_year == year,
        Question.module_semester == semester,
        Question.is_active == True,
    )


def get_owned_module(db: Session, lecturer: User, module_id: int) -> Module:
    module = db.query(Module).filter(
        Module.module_id == module_id,
        Module.created_by == lecturer.user_id,
        Module.is_active == True,
    ).first()
    if not module:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Module not found")
    return module


def _find_same_term_module(db: Session, lecturer_id: str, code: str, year: int, semester: int) -> Optional[Module]:
    return db.query(Module).filter(
        Module.created_by == lecturer_id,
        Module.module_code == code,
        Module.module_year == year,
        Module.module_semester == semester,
    ).first()


def list_modules_logic(
    db: Session,
    lecturer: User,
    search: Optional[str],
    year: Optional[int],
    semester: Optional[int],
) -> Dict[str, Any]:
    query = db.query(Module).filter(Module.created_by == lecturer.user_id, Module.is_active == True)
    if search:
        pattern = f"%{escape_like(search.strip().lower())}%"
        query = query.filter(or_(
            func.lower(Module.module_code).like(pattern, escape="\\"),
            func.lower(Module.module_name).like(pattern, escape="\\"),
        ))
    if year:
        query = query.filter(Module.module_year == year)
    if semester:
        query = query.filter(Module.module_semester == semester)

    modules = query.order_by(Module.module_year, Module.module_semester, Module.module_code).all()
    items = [
        serialize_module(
            m,
            module_question_query(db, lecturer.user_id, m.module_code, m.module_year, m.module_semester).count(),
        )
        for m in modules
    ]
    return {"success": True, "modules": items, "count": len(items)}


def create_module_logic(db: Session, lecturer: User, request: ModuleCreate) -> Dict[str, Any]:
    """Create a module for a lecturer.

    A previously deleted module with the same code/year/semester is revived
    instead of inserting a second row.

    Raises:
        HTTPException: 400 when an active module already uses the code for that term
    """
    existing = _find_same_term_module(
        db, lecturer.user_id, request.module_code, request.module_year, request.module_semester
    )
    if existing and existing.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_MODULE_MESSAGE)

    if existing:
        module = existing
        module.module_name = request.module_name.strip()
        module.credits = request.credits
        module.description = request.description.strip()
        module.is_active = True
    else:
        module = Module(
            created_by=lecturer.user_id,
            module_code=request.module_code,
            module_name=request.module_name.strip(),
            module_year=request.module_year,
            module_semester=request.module_semester,
            credits=request.credits,
            description=request.description.strip(),
        )
        db.add(module)
    db.commit()
    db.refresh(module)
    logger.info(f"Lecturer {lecturer.user_id} created module {module.module_code}")
    return {"success": True, "message": "Module created successfully", "module": serialize_module(module)}


def update_module_logic(db: Session, lecturer: User, module_id: int, request: ModuleUpdate) -> Dict[str, Any]:
    module = get_owned_module(db, lecturer, module_id)
    changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}

    code = changes.get("module_code", module.module_code)
    year = changes.get("module_year", module.module_year)
    semester = changes.get("module_semester", module.module_semester)
    clash = _find_same_term_module(db, lecturer.user_id, code, year, semester)
    if clash and clash.module_id != module.module_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_MODULE_MESSAGE)

    for field, value in changes.items():
        setattr(module, field, value.strip() if isinstance(value, str) else value)
    db.commit()
    db.refresh(module)
    return {"success": True, "message": "Module updated successfully", "module": serialize_module(module)}


def delete_module_logic(db: Session, lecturer: User, module_id: int) -> Dict[str, Any]:
    module = get_owned_module(db, lecturer, module_id)
    question_count = module_question_query(
        db, lecturer.user_id, module.module_code, module.module_year, module.module_semester
    ).count()
    if question_count > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete module. It has {question_count} question(s). Delete questions first."
        )
    module.is_active = False
    db.commit()
    return {"success": True, "message": "Module deleted successfully"}


def module_stats_logic(db: Session, lecturer: User) -> Dict[str, Any]:
    rows = (
        db.query(Module.module_year, Module.module_semester, func.count(Module.module_id))
        .filter(Module.created_by == lecturer.user_id, Module.is_active == True)
        .group_by(Module.module_year, Module.module_semester)
        .order_by(Module.module_year, Module.module_semester)
        .all()
    )
    year_stats = [{"year": y, "semester": s, "count": c} for y, s, c in rows]
    return {
        "success": True,
        "stats": {
            "total_modules": sum(item["count"] for item in year_stats),
            "year_stats": year_stats,
        },
    }
