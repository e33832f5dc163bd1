from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from fortitask.schemas.user import StudentBrief


def _to_utc(v: datetime | None) -> datetime | None:
    # stored without offset, so normalise to UTC first
    if v is None:
        return v
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class CourseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    credit_points: float = Field(gt=0)
    instructions: str = Field(min_length=1)
    deadline: datetime
    material_url: str | None = None

    @field_validator("deadline")
    @classmethod
    def deadline_in_utc(cls, v: datetime) -> datetime:
        return _to_utc(v)


class CourseUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    credit_points: float | None = Field(default=None, gt=0)
    instructions: str | None = Field(default=None, min_length=1)
    deadline: datetime | None = None
    material_url: str | None = None

    @field_validator("deadline")
    @classmethod
    def deadline_in_utc(cls, v: datetime | None) -> datetime | None:
        return _to_utc(v)


class CourseRead(BaseModel):
    id: int
    name: str
    credit_points: float
    instructions: str
    deadline: datetime
    material_url: str | None = None
    teacher_id: int

    class Config:
        from_attributes = True


class CourseDetail(CourseRead):
    students: list[StudentBrief] = []
