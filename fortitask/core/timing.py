"""
Submission timing analysis.

Classifies one submission from three timestamps:

- client_reported_date: the file's last-modified time as claimed by the
  uploading browser/OS. Untrusted: a student can set it to anything.
- uploaded_at: when the server received the file. Trusted.
- deadline: the course cutoff. Trusted.

The only check available against the client value is a cross-check with the
server upload time. A flag here means "implausible", never "proven"; a clean
result does not prove the client clock was honest. Treat the output as a
review hint for the teacher, not as a security control.

Evaluation order (first match wins):
    suspected_manipulation_future
    suspected_manipulation_clockback
    late_and_modified_after_deadline
    late
    on_time
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fortitask.core.config import CLOCKBACK_THRESHOLD

logger = logging.getLogger(__name__)

ON_TIME = "on_time"
LATE = "late"
LATE_AND_MODIFIED_AFTER_DEADLINE = "late_and_modified_after_deadline"
SUSPECTED_MANIPULATION_FUTURE = "suspected_manipulation_future"
SUSPECTED_MANIPULATION_CLOCKBACK = "suspected_manipulation_clockback"
UNAVAILABLE = "unavailable"

# manipulation_check values
CHECK_CLEAR = "clear"
CHECK_SUSPECTED = "suspected"
CHECK_UNAVAILABLE = UNAVAILABLE

NOT_AVAILABLE = "N/A"

LIMITATION_NOTE = (
    "Heuristic only: the client-reported modification time is supplied by the "
    "student's machine and can be set arbitrarily. Flags mark implausible "
    "timestamps; they do not prove manipulation or honesty."
)

_STATUS_TEXT = {
    SUSPECTED_MANIPULATION_FUTURE: (
        "Suspected manipulation: file modification time is later than the upload time"
    ),
    SUSPECTED_MANIPULATION_CLOCKBACK: (
        "Suspected manipulation: file claims a pre-deadline edit but arrived long after the deadline"
    ),
    LATE_AND_MODIFIED_AFTER_DEADLINE: "Late submission: file was modified after the deadline",
    LATE: "Late submission: file was last modified before the deadline",
    ON_TIME: "On time submission",
    UNAVAILABLE: "Timing information unavailable",
}

_SEVERITY = {
    SUSPECTED_MANIPULATION_FUTURE: "danger",
    SUSPECTED_MANIPULATION_CLOCKBACK: "danger",
    LATE_AND_MODIFIED_AFTER_DEADLINE: "danger",
    LATE: "warning",
    ON_TIME: "ok",
    UNAVAILABLE: "unknown",
}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_epoch_ms(value) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(value) -> Optional[datetime]:
    """
    Best-effort conversion to an aware UTC datetime.

    Accepts datetimes, ISO-8601 strings and epoch milliseconds (the browser
    File.lastModified format, as int or digit string). Returns None for
    anything else instead of raising.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, (int, float)):
        return _from_epoch_ms(value)

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    digits = text.lstrip("-")
    if digits.isascii() and digits.isdigit():
        try:
            ms = int(text)
        except ValueError:
            # beyond the int-from-str digit limit
            return None
        return _from_epoch_ms(ms)

    if text[-1] in ("Z", "z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("unparseable timestamp %r", value)
        return None

    return _as_utc(parsed)


def format_duration(delta: Optional[timedelta]) -> Optional[str]:
    """Render a positive delta as "{d}d {h}h {m}m", dropping leading zero units."""
    if delta is None or delta <= timedelta(0):
        return None

    total_minutes = int(delta.total_seconds() // 60)
    days, rest = divmod(total_minutes, 1440)
    hours, minutes = divmod(rest, 60)

    if days:
        return f"{days}d {hours}h {minutes}m"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_timestamp(value) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return NOT_AVAILABLE
    return parsed.strftime("%Y-%m-%d %H:%M:%S UTC")


@dataclass(frozen=True)
class TimingAnalysis:
    status: str
    manipulation_check: str

    is_late_submission: bool = False
    is_modified_after_deadline: bool = False
    suspected_time_manipulation: bool = False
    is_modified_before_but_submitted_late: bool = False

    client_reported_date: Optional[datetime] = None
    uploaded_at: Optional[datetime] = None
    deadline: Optional[datetime] = None

    submission_delay: Optional[timedelta] = None
    modification_delay: Optional[timedelta] = None

    @property
    def status_text(self) -> str:
        if self.status == LATE and self.client_reported_date is None:
            return "Late submission"
        return _STATUS_TEXT[self.status]

    @property
    def severity(self) -> str:
        return _SEVERITY[self.status]

    @property
    def submission_delay_text(self) -> Optional[str]:
        return format_duration(self.submission_delay)

    @property
    def modification_delay_text(self) -> Optional[str]:
        return format_duration(self.modification_delay)

    @property
    def submission_delay_minutes(self) -> Optional[int]:
        if self.submission_delay is None:
            return None
        return int(self.submission_delay.total_seconds() // 60)

    @property
    def duration_text(self) -> Optional[str]:
        """The delay that explains the label: edit time for modification-based lateness, else upload time."""
        if self.status == LATE_AND_MODIFIED_AFTER_DEADLINE:
            return self.modification_delay_text
        return self.submission_delay_text

    @property
    def client_server_difference_minutes(self) -> Optional[int]:
        if self.client_reported_date is None or self.uploaded_at is None:
            return None
        diff = abs(self.uploaded_at - self.client_reported_date)
        return round(diff.total_seconds() / 60)

    @property
    def deadline_display(self) -> str:
        return format_timestamp(self.deadline)

    @property
    def uploaded_at_display(self) -> str:
        return format_timestamp(self.uploaded_at)

    @property
    def client_reported_display(self) -> str:
        return format_timestamp(self.client_reported_date)

    @property
    def limitation(self) -> str:
        return LIMITATION_NOTE


def classify_submission(
    client_reported_date,
    uploaded_at,
    deadline,
    clockback_threshold: timedelta = CLOCKBACK_THRESHOLD,
) -> TimingAnalysis:
    """
    Classify a submission's timing for teacher review.

    Inputs may be datetimes, ISO strings, epoch milliseconds or None. Missing
    or unparseable upload/deadline values give an "unavailable" result; a
    missing client value only disables the manipulation checks.
    """
    client = parse_timestamp(client_reported_date)
    uploaded = parse_timestamp(uploaded_at)
    due = parse_timestamp(deadline)

    if uploaded is None or due is None:
        return TimingAnalysis(
            status=UNAVAILABLE,
            manipulation_check=CHECK_UNAVAILABLE,
            client_reported_date=client,
            uploaded_at=uploaded,
            deadline=due,
        )

    is_late = uploaded > due

    if client is None:
        manipulation_check = CHECK_UNAVAILABLE
        future = False
        clockback = False
        modified_after = False
    else:
        future = client > uploaded
        clockback = (
            not future
            and is_late
            and client <= due
            and uploaded - due > clockback_threshold
        )
        manipulation_check = CHECK_SUSPECTED if future or clockback else CHECK_CLEAR
        modified_after = client > due

    suspected = future or clockback

    if future:
        status = SUSPECTED_MANIPULATION_FUTURE
    elif clockback:
        status = SUSPECTED_MANIPULATION_CLOCKBACK
    elif is_late and modified_after:
        status = LATE_AND_MODIFIED_AFTER_DEADLINE
    elif is_late:
        status = LATE
    else:
        status = ON_TIME

    return TimingAnalysis(
        status=status,
        manipulation_check=manipulation_check,
        is_late_submission=is_late,
        is_modified_after_deadline=modified_after,
        suspected_time_manipulation=suspected,
        is_modified_before_but_submitted_late=(
            is_late and client is not None and client <= due and not suspected
        ),
        client_reported_date=client,
        uploaded_at=uploaded,
        deadline=due,
        submission_delay=uploaded - due if is_late else None,
        modification_delay=client - due if modified_after else None,
    )
