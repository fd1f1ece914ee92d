from typing import Optional, List, Literal
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

QuestionType = Literal["MCQ", "Structured", "Essay"]
Difficulty = Literal["Easy", "Medium", "Hard"]


class QuestionOption(BaseModel):
    model_config = {"str_strip_whitespace": True}

    text: str
    is_correct: bool = False


class QuestionCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    question_type: QuestionType
    question_text: str = Field(min_length=1)
    options: List[QuestionOption] = []
    answer: str = ""
    image: Optional[str] = None
    equations: List[str] = []
    tags: List[str] = []
    module_code: str = Field(min_length=1, max_length=20)
    module_year: int = Field(ge=1, le=4)
    module_semester: int = Field(ge=1, le=2)
    difficulty: Difficulty = "Medium"

    @field_validator("module_code")
    @classmethod
    def normalise_code(cls, v: str) -> str:
        return v.strip().upper()


class QuestionUpdate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    question_type: Optional[QuestionType] = None
    question_text: Optional[str] = Field(default=None, min_length=1)
    options: Optional[List[QuestionOption]] = None
    answer: Optional[str] = None
    image: Optional[str] = None
    equations: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    module_code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    module_year: Optional[int] = Field(default=None, ge=1, le=4)
    module_semester: Optional[int] = Field(default=None, ge=1, le=2)
    difficulty: Optional[Difficulty] = None

    @field_validator("module_code")
    @classmethod
    def normalise_code(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v is not None else v


class QuestionOut(BaseModel):
    question_id: int
    question_type: str
    question_text: str
    options: List[QuestionOption]
    answer: str
    image: Optional[str] = None
    equations: List[str]
    tags: List[str]
    module_code: str
    module_year: int
    module_semester: int
    difficulty: str
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class StudentQuestionOption(BaseModel):
    text: str


class StudentQuestionOut(BaseModel):
    """A question as a student sees it while taking a quiz, without answers"""
    question_id: int
    question_type: str
    question_text: str
    options: List[StudentQuestionOption]
    image: Optional[str] = None
    equations: List[str]
    difficulty: str

    model_config = {
        "from_attributes": True
    }
