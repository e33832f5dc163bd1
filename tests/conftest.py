import os
from datetime import datetime, timedelta, timezone

TEST_DB_FILE = "test_fortitask.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# point the app's own engine (used by startup create_all) at the test file too
os.environ.setdefault("FORTITASK_DATABASE_URL", TEST_DB_URL)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from fortitask.core.deps import get_db  # noqa: E402
from fortitask.core.security import hash_password  # noqa: E402
from fortitask.db.base import Base  # noqa: E402
from fortitask.main import app  # noqa: E402
from fortitask.models.course import Course  # noqa: E402
from fortitask.models.enrollment import Enrollment  # noqa: E402
from fortitask.models.submission import Submission  # noqa: E402
from fortitask.models.user import User  # noqa: E402

PASSWORD = "Password1!"
HASHED_PASSWORD = hash_password(PASSWORD)

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed_data():
    """
    Seed a clean minimal dataset for each test:
    student1 enrolled in CS101 (teacher1), student2 not enrolled anywhere.
    """
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        db.query(Submission).delete()
        db.query(Enrollment).delete()
        db.query(Course).delete()
        db.query(User).delete()
        db.commit()

        student = User(
            email="student1@example.com",
            username="Student One",
            role="student",
            hashed_password=HASHED_PASSWORD,
        )
        outsider = User(
            email="student2@example.com",
            username="Student Two",
            role="student",
            hashed_password=HASHED_PASSWORD,
        )
        teacher = User(
            email="teacher1@example.com",
            username="Teacher One",
            role="teacher",
            hashed_password=HASHED_PASSWORD,
        )
        other_teacher = User(
            email="teacher2@example.com",
            username="Teacher Two",
            role="teacher",
            hashed_password=HASHED_PASSWORD,
        )
        db.add_all([student, outsider, teacher, other_teacher])
        db.commit()
        db.refresh(student)
        db.refresh(teacher)

        # Course (future deadline so submissions are on time)
        course = Course(
            name="CS101",
            credit_points=3,
            instructions="Upload your report as PDF",
            deadline=datetime.now(timezone.utc) + timedelta(days=1),
            teacher_id=teacher.id,
        )
        db.add(course)
        db.commit()
        db.refresh(course)

        db.add(Enrollment(course_id=course.id, student_id=student.id))
        db.commit()

        yield
    finally:
        db.close()


@pytest.fixture()
def client():
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def course_id():
    db = TestingSessionLocal()
    try:
        return db.query(Course).filter(Course.name == "CS101").one().id
    finally:
        db.close()


def set_course_deadline(course_id: int, deadline: datetime) -> None:
    db = TestingSessionLocal()
    try:
        c = db.query(Course).filter(Course.id == course_id).one()
        c.deadline = deadline
        db.commit()
    finally:
        db.close()


def login(client, email: str, password: str = PASSWORD) -> str:
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
