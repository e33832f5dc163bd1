from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, StrictBool, StrictInt

from fortitask.schemas.analysis import TimingAnalysisRead


class SubmissionCreate(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    original_size: Optional[int] = Field(default=None, ge=0)
    comment: Optional[str] = None

    # untrusted: epoch milliseconds or an ISO-8601 string, passed through as sent;
    # strict types so a JSON boolean stays a boolean (unparseable) instead of 1
    client_reported_date: Optional[Union[StrictBool, StrictInt, str]] = None


class SubmissionRead(BaseModel):
    id: int
    course_id: int
    student_id: int
    file_name: str
    file_url: Optional[str]
    file_type: Optional[str]
    original_size: Optional[int]
    comment: Optional[str]

    client_reported_raw: Optional[str]
    client_reported_date: Optional[datetime]
    uploaded_at: datetime

    timing_status: str
    is_late_submission: bool
    is_modified_after_deadline: bool
    suspected_time_manipulation: bool
    is_modified_before_but_submitted_late: bool

    class Config:
        from_attributes = True


class SubmissionWithAnalysis(SubmissionRead):
    analysis: TimingAnalysisRead


class SubmissionCreated(BaseModel):
    is_late: bool
    submission: SubmissionRead
    analysis: TimingAnalysisRead
