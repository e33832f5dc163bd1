from pydantic import BaseModel


class TimingAnalysisRead(BaseModel):
    status: str
    status_text: str
    severity: str  # "ok" | "warning" | "danger" | "unknown"
    manipulation_check: str  # "clear" | "suspected" | "unavailable"

    is_late_submission: bool
    is_modified_after_deadline: bool
    suspected_time_manipulation: bool
    is_modified_before_but_submitted_late: bool

    duration_text: str | None = None
    submission_delay_text: str | None = None
    submission_delay_minutes: int | None = None
    modification_delay_text: str | None = None
    client_server_difference_minutes: int | None = None

    deadline_display: str
    uploaded_at_display: str
    client_reported_display: str

    limitation: str

    class Config:
        from_attributes = True
