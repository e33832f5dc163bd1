import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from fortitask.core.current_user import get_current_user
from fortitask.core.deps import get_db
from fortitask.core.permissions import ROLE_TEACHER, require_student, require_teacher
from fortitask.core.timing import classify_submission, parse_timestamp
from fortitask.models.course import Course
from fortitask.models.submission import Submission
from fortitask.models.user import User
from fortitask.routers.courses import ensure_course_exists, ensure_course_owner, is_enrolled
from fortitask.schemas.analysis import TimingAnalysisRead
from fortitask.schemas.submission import SubmissionCreate, SubmissionCreated, SubmissionWithAnalysis

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_submission_exists(db: Session, submission_id: int) -> Submission:
    sub = db.query(Submission).filter(Submission.id == submission_id).first()
    if not sub:
        raise HTTPException(status_code=404, detail="Submission not found")
    return sub


def _analyze(sub: Submission, course: Course) -> TimingAnalysisRead:
    analysis = classify_submission(sub.client_reported_date, sub.uploaded_at, course.deadline)
    return TimingAnalysisRead.model_validate(analysis)


@router.post(
    "/courses/{course_id}/submissions",
    response_model=SubmissionCreated,
    status_code=status.HTTP_201_CREATED,
)
def submit_assignment(
    course_id: int,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    student: User = Depends(require_student),
):
    course = ensure_course_exists(db, course_id)
    if not is_enrolled(db, course_id, student.id):
        raise HTTPException(status_code=403, detail="Not enrolled in this course")

    now = datetime.now(timezone.utc)
    raw = payload.client_reported_date
    client_reported = parse_timestamp(raw)
    if raw is not None and client_reported is None:
        logger.info(
            "student id=%s sent unparseable client date %r for course id=%s",
            student.id,
            raw,
            course_id,
        )

    analysis = classify_submission(client_reported, now, course.deadline)

    s = Submission(
        course_id=course_id,
        student_id=student.id,
        file_name=payload.file_name,
        file_url=payload.file_url,
        file_type=payload.file_type,
        original_size=payload.original_size,
        comment=payload.comment,
        client_reported_raw=str(raw)[:64] if raw is not None else None,
        client_reported_date=client_reported,
        uploaded_at=now,
        timing_status=analysis.status,
        is_late_submission=analysis.is_late_submission,
        is_modified_after_deadline=analysis.is_modified_after_deadline,
        suspected_time_manipulation=analysis.suspected_time_manipulation,
        is_modified_before_but_submitted_late=analysis.is_modified_before_but_submitted_late,
    )
    db.add(s)

    if analysis.is_late_submission:
        student.late_submissions = (student.late_submissions or 0) + 1

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(s)

    if analysis.suspected_time_manipulation:
        logger.warning(
            "submission id=%s flagged %s (student id=%s, course id=%s, diff=%s min)",
            s.id,
            analysis.status,
            student.id,
            course_id,
            analysis.client_server_difference_minutes,
        )
    else:
        logger.info("submission id=%s stored as %s", s.id, analysis.status)

    return {
        "is_late": analysis.is_late_submission,
        "submission": s,
        "analysis": TimingAnalysisRead.model_validate(analysis),
    }


@router.get(
    "/courses/{course_id}/submissions",
    response_model=list[SubmissionWithAnalysis],
)
def list_submissions(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    course = ensure_course_exists(db, course_id)

    q = db.query(Submission).filter(Submission.course_id == course_id)
    if current_user.role == ROLE_TEACHER:
        ensure_course_owner(course, current_user)
    else:
        if not is_enrolled(db, course_id, current_user.id):
            raise HTTPException(status_code=403, detail="Not enrolled in this course")
        q = q.filter(Submission.student_id == current_user.id)

    subs = q.order_by(Submission.uploaded_at.asc(), Submission.id.asc()).all()

    # attach live analysis against the current deadline
    for s in subs:
        s.analysis = _analyze(s, course)

    return subs


@router.get(
    "/submissions/{submission_id}/analysis",
    response_model=TimingAnalysisRead,
)
def submission_analysis(
    submission_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    sub = _ensure_submission_exists(db, submission_id)
    course = ensure_course_exists(db, sub.course_id)
    ensure_course_owner(course, teacher)

    return _analyze(sub, course)


@router.delete(
    "/courses/{course_id}/submissions/{submission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_submission(
    course_id: int,
    submission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    course = ensure_course_exists(db, course_id)
    sub = _ensure_submission_exists(db, submission_id)
    if sub.course_id != course_id:
        raise HTTPException(status_code=404, detail="Submission not found")

    is_owner = sub.student_id == current_user.id
    is_course_teacher = current_user.role == ROLE_TEACHER and course.teacher_id == current_user.id
    if not (is_owner or is_course_teacher):
        raise HTTPException(status_code=403, detail="Not allowed to delete this submission")

    db.delete(sub)
    db.commit()

    logger.info("user id=%s deleted submission id=%s", current_user.id, submission_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
