from datetime import datetime

from pydantic import BaseModel


class EnrollmentOut(BaseModel):
    id: int
    student_id: int
    course_id: int
    registered_at: datetime

    class Config:
        from_attributes = True
