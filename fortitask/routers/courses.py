import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fortitask.core.current_user import get_current_user
from fortitask.core.deps import get_db
from fortitask.core.permissions import ROLE_TEACHER, require_student, require_teacher
from fortitask.models.course import Course
from fortitask.models.enrollment import Enrollment
from fortitask.models.user import User
from fortitask.schemas.course import CourseCreate, CourseDetail, CourseRead, CourseUpdate
from fortitask.schemas.enrollment import EnrollmentOut

logger = logging.getLogger(__name__)

router = APIRouter()


def ensure_course_exists(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


def ensure_course_owner(course: Course, teacher: User) -> None:
    if course.teacher_id != teacher.id:
        raise HTTPException(status_code=403, detail="Not the teacher of this course")


def is_enrolled(db: Session, course_id: int, student_id: int) -> bool:
    return (
        db.query(Enrollment)
        .filter(Enrollment.course_id == course_id, Enrollment.student_id == student_id)
        .first()
        is not None
    )


@router.post("", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    course = Course(
        name=payload.name,
        credit_points=payload.credit_points,
        instructions=payload.instructions,
        deadline=payload.deadline,
        material_url=payload.material_url,
        teacher_id=teacher.id,
    )
    db.add(course)
    db.commit()
    db.refresh(course)

    logger.info("teacher id=%s created course id=%s", teacher.id, course.id)
    return course


@router.get("", response_model=list[CourseRead])
def list_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # students browse the full catalogue, teachers only see what they run
    q = db.query(Course)
    if current_user.role == ROLE_TEACHER:
        q = q.filter(Course.teacher_id == current_user.id)
    return q.order_by(Course.deadline.asc(), Course.id.asc()).all()


@router.get("/me", response_model=list[CourseRead])
def my_courses(
    db: Session = Depends(get_db),
    student: User = Depends(require_student),
):
    return (
        db.query(Course)
        .join(Enrollment, Enrollment.course_id == Course.id)
        .filter(Enrollment.student_id == student.id)
        .order_by(Course.deadline.asc(), Course.id.asc())
        .all()
    )


@router.post(
    "/{course_id}/register",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
def register_to_course(
    course_id: int,
    db: Session = Depends(get_db),
    student: User = Depends(require_student),
):
    ensure_course_exists(db, course_id)

    enrollment = Enrollment(student_id=student.id, course_id=course_id)
    db.add(enrollment)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Already registered for this course")

    db.refresh(enrollment)
    return enrollment


@router.get("/{course_id}", response_model=CourseDetail)
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    course = ensure_course_exists(db, course_id)

    if current_user.role == ROLE_TEACHER:
        ensure_course_owner(course, current_user)
    elif not is_enrolled(db, course_id, current_user.id):
        raise HTTPException(status_code=403, detail="Not enrolled in this course")

    return course


@router.put("/{course_id}", response_model=CourseRead)
def update_course(
    course_id: int,
    payload: CourseUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    course = ensure_course_exists(db, course_id)
    ensure_course_owner(course, teacher)

    # stored submission flags keep the deadline they were judged against
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field != "material_url":
            continue
        setattr(course, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(course)
    return course


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    course = ensure_course_exists(db, course_id)
    ensure_course_owner(course, teacher)

    db.delete(course)
    db.commit()

    logger.info("teacher id=%s deleted course id=%s", teacher.id, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
