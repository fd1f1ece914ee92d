from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator


class ModuleCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    module_code: str = Field(min_length=1, max_length=20)
    module_name: str = Field(min_length=1, max_length=255)
    module_year: int = Field(ge=1, le=4)
    module_semester: int = Field(ge=1, le=2)
    credits: int = Field(ge=1, le=10)
    description: str = ""

    @field_validator("module_code")
    @classmethod
    def normalise_code(cls, v: str) -> str:
        return v.strip().upper()


class ModuleUpdate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    module_code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    module_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    module_year: Optional[int] = Field(default=None, ge=1, le=4)
    module_semester: Optional[int] = Field(default=None, ge=1, le=2)
    credits: Optional[int] = Field(default=None, ge=1, le=10)
    description: Optional[str] = None

    @field_validator("module_code")
    @classmethod
    def normalise_code(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v is not None else v


class ModuleOut(BaseModel):
    module_id: int
    module_code: str
    module_name: str
    module_year: int
    module_semester: int
    credits: int
    description: str
    created_by: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
