from typing import Optional
import datetime as dt
from pydantic import BaseModel, Field


class QuizWindowCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    degree_title: str = Field(min_length=1, max_length=255)
    year: int = Field(ge=1, le=4)
    semester: int = Field(ge=1, le=2)
    date: dt.date
    start_time: dt.datetime
    end_time: dt.datetime
    duration: int = Field(ge=1)


class QuizWindowUpdate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    degree_title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    year: Optional[int] = Field(default=None, ge=1, le=4)
    semester: Optional[int] = Field(default=None, ge=1, le=2)
    date: Optional[dt.date] = None
    start_time: Optional[dt.datetime] = None
    end_time: Optional[dt.datetime] = None
    duration: Optional[int] = Field(default=None, ge=1)


class QuizWindowOut(BaseModel):
    window_id: int
    degree_title: str
    year: int
    semester: int
    date: dt.date
    start_time: dt.datetime
    end_time: dt.datetime
    duration: int
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = {
        "from_attributes": True
    }
