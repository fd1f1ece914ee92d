from typing import Annotated, Optional, Literal
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, StringConstraints

Role = Literal["admin", "lecturer", "student"]
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class UserOut(BaseModel):
    user_id: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    role: str
    degree_title: Optional[str] = None
    current_year: Optional[int] = None
    current_semester: Optional[int] = None
    is_active: bool
    last_login_time: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class UserCreate(BaseModel):
    first_name: Name
    last_name: Name
    email: EmailStr
    password: str
    role: Role
    degree_title: Optional[str] = None
    current_year: Optional[int] = Field(default=None, ge=1, le=4)
    current_semester: Optional[int] = Field(default=None, ge=1, le=2)


class UserUpdate(BaseModel):
    first_name: Optional[Name] = None
    last_name: Optional[Name] = None
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    degree_title: Optional[str] = None
    current_year: Optional[int] = Field(default=None, ge=1, le=4)
    current_semester: Optional[int] = Field(default=None, ge=1, le=2)


class UserStatusUpdate(BaseModel):
    is_active: bool


class AdminPasswordReset(BaseModel):
    new_password: str
