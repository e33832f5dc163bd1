import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

PASSWORD_RULES = "Password must be at least 8 characters and include uppercase, lowercase, number and special character."

_STRONG_PASSWORD = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z\d]).{8,}$")


def _check_strength(password: str) -> str:
    if not _STRONG_PASSWORD.match(password):
        raise ValueError(PASSWORD_RULES)
    return password


class UserCreate(BaseModel):
    email: EmailStr
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8, max_length=72)
    role: Literal["student", "teacher"] = "student"

    @field_validator("password")
    @classmethod
    def password_is_strong(cls, v: str) -> str:
        return _check_strength(v)


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    username: str | None = Field(default=None, min_length=1, max_length=255)
    password: str | None = Field(default=None, min_length=8, max_length=72)

    @field_validator("password")
    @classmethod
    def password_is_strong(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _check_strength(v)


class UserRead(BaseModel):
    id: int
    email: EmailStr
    username: str
    role: str
    late_submissions: int = 0
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class StudentBrief(BaseModel):
    id: int
    username: str
    email: EmailStr

    class Config:
        from_attributes = True
