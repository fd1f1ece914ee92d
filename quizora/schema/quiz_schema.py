from typing import Optional, List, Any, Union
from datetime import datetime
from pydantic import BaseModel, Field


class EligibilityCriterionIn(BaseModel):
    model_config = {"str_strip_whitespace": True}

    degree_title: str = Field(min_length=1)
    year: int = Field(ge=1, le=4)
    semester: int = Field(ge=1, le=2)


class EligibilityCriterionOut(EligibilityCriterionIn):
    model_config = {
        "from_attributes": True
    }


class QuizCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    module_id: int
    duration: int = Field(ge=1)
    start_date_time: datetime
    end_date_time: datetime
    instructions: str = Field(min_length=1)
    passcode: str = Field(min_length=1, max_length=100)
    eligibility_criteria: List[EligibilityCriterionIn]
    shuffle_questions: bool = False
    show_results_immediately: bool = False
    allow_late_submission: bool = False
    max_attempts: int = Field(default=1, ge=1)


class QuizUpdate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1)
    start_date_time: Optional[datetime] = None
    end_date_time: Optional[datetime] = None
    instructions: Optional[str] = Field(default=None, min_length=1)
    passcode: Optional[str] = Field(default=None, min_length=1, max_length=100)
    eligibility_criteria: Optional[List[EligibilityCriterionIn]] = None
    shuffle_questions: Optional[bool] = None
    show_results_immediately: Optional[bool] = None
    allow_late_submission: Optional[bool] = None
    max_attempts: Optional[int] = Field(default=None, ge=1)


class QuizOut(BaseModel):
    quiz_id: int
    title: str
    description: str
    module_id: int
    module_code: str
    module_year: int
    module_semester: int
    duration: int
    start_date_time: datetime
    end_date_time: datetime
    instructions: str
    passcode: str
    eligibility_criteria: List[EligibilityCriterionOut]
    shuffle_questions: bool
    show_results_immediately: bool
    allow_late_submission: bool
    max_attempts: int
    question_count: int
    status: str
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class StudentQuizOut(BaseModel):
    """Quiz summary shown to students; never carries the passcode"""
    quiz_id: int
    title: str
    description: str
    module_code: str
    module_year: int
    module_semester: int
    duration: int
    start_date_time: datetime
    end_date_time: datetime
    instructions: str
    question_count: int
    status: str
    shuffle_questions: bool
    allow_late_submission: bool
    max_attempts: int

    model_config = {
        "from_attributes": True
    }


##################
### Submission ###
##################
class PasscodeRequest(BaseModel):
    passcode: str


class SubmittedAnswer(BaseModel):
    question_id: int
    answer: Union[str, List[str], None] = None


class QuizSubmission(BaseModel):
    answers: List[SubmittedAnswer] = []
    start_time: datetime
    time_taken: Optional[int] = Field(default=None, ge=0)


class ResultAnswerOut(BaseModel):
    question_id: int
    question_text: str
    question_type: str
    student_answer: Any = None
    correct_answer: Optional[str] = None
    is_correct: bool
    marks: int
    max_marks: int

    model_config = {
        "from_attributes": True
    }


class ResultOut(BaseModel):
    result_id: int
    student_id: str
    student_name: str
    student_email: str
    quiz_id: int
    quiz_title: str
    module_code: str
    score: int
    total_marks: int
    percentage: int
    grade: str
    time_taken: int
    start_time: datetime
    end_time: datetime
    submission_type: str
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
