from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from quizora.database import get_db
from quizora.model.users import User
from quizora.router.api.logics import module_logic
from quizora.router.dependencies import get_current_lecturer
from quizora.schema.module_schema import ModuleCreate, ModuleUpdate

router = APIRouter()


@router.get("/stats", response_model=dict, status_code=status.HTTP_200_OK)
async def get_module_stats(
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return module_logic.module_stats_logic(db, lecturer)


@router.get("/", response_model=dict, status_code=status.HTTP_200_OK)
async def list_modules(
    search: Optional[str] = Query(None),
    year: Optional[int] = Query(None, ge=1, le=4),
    semester: Optional[int] = Query(None, ge=1, le=2),
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    """The lecturer's modules with the number of questions in each"""
    return module_logic.list_modules_logic(db, lecturer, search, year, semester)


@router.post("/", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_module(
    request: ModuleCreate,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return module_logic.create_module_logic(db, lecturer, request)


@router.put("/{module_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def update_module(
    module_id: int,
    request: ModuleUpdate,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return module_logic.update_module_logic(db, lecturer, module_id, request)


@router.delete("/{module_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def delete_module(
    module_id: int,
    db: Session = Depends(get_db),
    lecturer: User = Depends(get_current_lecturer),
):
    return module_logic.delete_module_logic(db, lecturer, module_id)
