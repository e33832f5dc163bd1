from datetime import datetime, timedelta, timezone

from fortitask.models.user import User
from tests.conftest import TestingSessionLocal, auth_header, login, set_course_deadline


def submit(client, token, course_id, **overrides):
    payload = {"file_name": "report.pdf", "file_type": "application/pdf", "original_size": 2048}
    payload.update(overrides)
    return client.post(
        f"/courses/{course_id}/submissions",
        headers=auth_header(token),
        json=payload,
    )


def epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def late_count(email: str) -> int:
    db = TestingSessionLocal()
    try:
        return db.query(User).filter(User.email == email).one().late_submissions
    finally:
        db.close()


def test_on_time_submission(client, course_id):
    student = login(client, "student1@example.com")
    edited = datetime.now(timezone.utc).replace(microsecond=0) - timedelta(hours=1)

    r = submit(client, student, course_id, client_reported_date=epoch_ms(edited))
    assert r.status_code == 201, r.text

    body = r.json()
    assert body["is_late"] is False
    assert body["submission"]["file_name"] == "report.pdf"
    assert body["submission"]["timing_status"] == "on_time"
    assert body["analysis"]["status"] == "on_time"
    assert body["analysis"]["manipulation_check"] == "clear"
    assert late_count("student1@example.com") == 0


def test_late_submission_edited_before_deadline(client, course_id):
    student = login(client, "student1@example.com")
    now = datetime.now(timezone.utc).replace(microsecond=0)
    set_course_deadline(course_id, now - timedelta(hours=2))

    r = submit(
        client,
        student,
        course_id,
        client_reported_date=(now - timedelta(hours=3)).isoformat(),
    )
    assert r.status_code == 201, r.text

    body = r.json()
    assert body["is_late"] is True
    assert body["submission"]["is_late_submission"] is True
    assert body["submission"]["is_modified_before_but_submitted_late"] is True
    assert body["analysis"]["status"] == "late"
    assert body["analysis"]["duration_text"].startswith("2h")
    assert late_count("student1@example.com") == 1


def test_late_submission_edited_after_deadline(client, course_id):
    student = login(client, "student1@example.com")
    now = datetime.now(timezone.utc).replace(microsecond=0)
    set_course_deadline(course_id, now - timedelta(hours=2))

    r = submit(client, student, course_id, client_reported_date=epoch_ms(now - timedelta(minutes=30)))
    body = r.json()
    assert body["analysis"]["status"] == "late_and_modified_after_deadline"
    assert body["submission"]["is_modified_after_deadline"] is True
    assert body["analysis"]["duration_text"] == "1h 30m"


def test_future_client_clock_is_flagged(client, course_id):
    student = login(client, "student1@example.com")
    future = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(hours=5)

    r = submit(client, student, course_id, client_reported_date=epoch_ms(future))
    body = r.json()
    assert body["submission"]["timing_status"] == "suspected_manipulation_future"
    assert body["submission"]["suspected_time_manipulation"] is True
    assert body["analysis"]["severity"] == "danger"


def test_clockback_is_flagged(client, course_id):
    student = login(client, "student1@example.com")
    now = datetime.now(timezone.utc).replace(microsecond=0)
    set_course_deadline(course_id, now - timedelta(days=3))

    r = submit(client, student, course_id, client_reported_date=epoch_ms(now - timedelta(days=4)))
    body = r.json()
    assert body["analysis"]["status"] == "suspected_manipulation_clockback"
    assert body["is_late"] is True


def test_unparseable_client_date_is_kept_raw(client, course_id):
    student = login(client, "student1@example.com")

    r = submit(client, student, course_id, client_reported_date="last tuesday")
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["submission"]["client_reported_raw"] == "last tuesday"
    assert body["submission"]["client_reported_date"] is None
    assert body["analysis"]["status"] == "on_time"
    assert body["analysis"]["manipulation_check"] == "unavailable"
    assert body["analysis"]["client_reported_display"] == "N/A"


def test_submission_requires_enrollment(client, course_id):
    outsider = login(client, "student2@example.com")
    assert submit(client, outsider, course_id).status_code == 403

    teacher = login(client, "teacher1@example.com")
    assert submit(client, teacher, course_id).status_code == 403


def test_submission_to_missing_course(client):
    student = login(client, "student1@example.com")
    assert submit(client, student, 999999).status_code == 404


def test_listing_scopes_by_role(client, course_id):
    student = login(client, "student1@example.com")
    submit(client, student, course_id, file_name="a.pdf")
    submit(client, student, course_id, file_name="b.pdf")

    teacher = login(client, "teacher1@example.com")
    r = client.get(f"/courses/{course_id}/submissions", headers=auth_header(teacher))
    assert r.status_code == 200
    rows = r.json()
    assert [row["file_name"] for row in rows] == ["a.pdf", "b.pdf"]
    assert all("analysis" in row for row in rows)

    r = client.get(f"/courses/{course_id}/submissions", headers=auth_header(student))
    assert len(r.json()) == 2

    outsider = login(client, "student2@example.com")
    r = client.get(f"/courses/{course_id}/submissions", headers=auth_header(outsider))
    assert r.status_code == 403

    other_teacher = login(client, "teacher2@example.com")
    r = client.get(f"/courses/{course_id}/submissions", headers=auth_header(other_teacher))
    assert r.status_code == 403


def test_analysis_uses_current_deadline_but_stored_flags_do_not_change(client, course_id):
    student = login(client, "student1@example.com")
    r = submit(client, student, course_id)
    sub = r.json()["submission"]
    assert sub["timing_status"] == "on_time"

    set_course_deadline(course_id, datetime.now(timezone.utc) - timedelta(hours=1))

    teacher = login(client, "teacher1@example.com")
    r = client.get(f"/submissions/{sub['id']}/analysis", headers=auth_header(teacher))
    assert r.status_code == 200, r.text
    analysis = r.json()
    assert analysis["status"] == "late"
    assert analysis["manipulation_check"] == "unavailable"
    assert analysis["limitation"]

    r = client.get(f"/courses/{course_id}/submissions", headers=auth_header(teacher))
    row = r.json()[0]
    assert row["timing_status"] == "on_time"
    assert row["analysis"]["status"] == "late"


def test_analysis_is_teacher_only(client, course_id):
    student = login(client, "student1@example.com")
    sub_id = submit(client, student, course_id).json()["submission"]["id"]

    assert client.get(f"/submissions/{sub_id}/analysis", headers=auth_header(student)).status_code == 403

    other_teacher = login(client, "teacher2@example.com")
    r = client.get(f"/submissions/{sub_id}/analysis", headers=auth_header(other_teacher))
    assert r.status_code == 403

    teacher = login(client, "teacher1@example.com")
    assert client.get("/submissions/999999/analysis", headers=auth_header(teacher)).status_code == 404


def test_delete_submission(client, course_id):
    student = login(client, "student1@example.com")
    first = submit(client, student, course_id).json()["submission"]["id"]
    second = submit(client, student, course_id).json()["submission"]["id"]

    outsider = login(client, "student2@example.com")
    r = client.delete(f"/courses/{course_id}/submissions/{first}", headers=auth_header(outsider))
    assert r.status_code == 403

    r = client.delete(f"/courses/{course_id}/submissions/{first}", headers=auth_header(student))
    assert r.status_code == 204

    teacher = login(client, "teacher1@example.com")
    r = client.delete(f"/courses/{course_id}/submissions/{second}", headers=auth_header(teacher))
    assert r.status_code == 204

    r = client.get(f"/courses/{course_id}/submissions", headers=auth_header(teacher))
    assert r.json() == []


def test_non_ascii_and_oversized_digit_client_dates_are_unparseable(client, course_id):
    student = login(client, "student1@example.com")

    for raw in ("²", "1" * 5000):
        r = submit(client, student, course_id, client_reported_date=raw)
        assert r.status_code == 201, r.text
        body = r.json()
        assert body["submission"]["client_reported_date"] is None
        assert body["analysis"]["status"] == "on_time"
        assert body["analysis"]["manipulation_check"] == "unavailable"


def test_boolean_client_date_is_not_read_as_epoch(client, course_id):
    student = login(client, "student1@example.com")
    set_course_deadline(course_id, datetime.now(timezone.utc) - timedelta(days=3))

    r = submit(client, student, course_id, client_reported_date=True)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["submission"]["client_reported_raw"] == "True"
    assert body["submission"]["client_reported_date"] is None
    assert body["analysis"]["manipulation_check"] == "unavailable"
    assert body["analysis"]["status"] == "late"
