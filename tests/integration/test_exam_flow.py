from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.models.certificate import Certificate
from app.models.notification import Notification
from tests.helpers.asserts import api_call, assert_error, boolean, option


def correct(course):
    return {f"{course.slug}-q1": option(1), f"{course.slug}-q2": boolean(True)}


def wrong(course):
    return {f"{course.slug}-q1": option(3), f"{course.slug}-q2": boolean(False)}


def take_exam(client, headers, course, answers):
    start = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=headers)
    attempt_id = start.json()["data"]["id"]
    submitted = api_call(client, "POST", f"/exams/attempts/{attempt_id}/submit", headers=headers, json={"answers": answers})
    return submitted.json()["data"]


def test_pass_on_first_attempt_issues_one_certificate(client: TestClient, db_session: Session, exam_setup, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)

    result = take_exam(client, headers, course, correct(course))

    assert result["attempt_number"] == 1
    assert result["score"] == 100
    assert result["passed"] is True
    assert result["status"] == "submitted"
    assert result["certificate_number"]

    certificates = api_call(client, "GET", "/certificates/me", headers=headers).json()["data"]
    assert len(certificates) == 1
    assert certificates[0]["certificate_number"] == result["certificate_number"]
    assert certificates[0]["exam_attempt_id"] == result["id"]

    verified = api_call(client, "GET", f"/verify/{result['certificate_number']}").json()["data"]
    assert verified["status"] == "valid"
    assert verified["certificate"]["course_title"] == course.title


def test_failed_attempt_leaves_second_attempt_available(client: TestClient, db_session: Session, exam_setup, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)

    result = take_exam(client, headers, course, wrong(course))

    assert result["score"] == 0
    assert result["passed"] is False
    assert result["certificate_number"] is None
    assert db_session.query(Certificate).count() == 0

    overview = api_call(client, "GET", f"/exams/{course.id}", headers=headers).json()["data"]
    assert overview["attempts_used"] == 1
    assert overview["attempts_remaining"] == 1
    assert overview["can_start"] is True

    second = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=headers).json()["data"]
    assert second["attempt_number"] == 2


def test_third_attempt_after_two_failures_is_rejected(client: TestClient, db_session: Session, exam_setup, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)

    take_exam(client, headers, course, wrong(course))
    take_exam(client, headers, course, wrong(course))

    body = assert_error(client.post(f"/exams/{course.id}/attempts", headers=headers), 409, "ATTEMPT_LIMIT_EXCEEDED")
    assert body["error"]["details"] == {"max_attempts": 2, "attempts_used": 2}


def test_passing_twice_keeps_certificate_bound_to_first_attempt(client: TestClient, db_session: Session, exam_setup, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)

    first = take_exam(client, headers, course, correct(course))
    second = take_exam(client, headers, course, correct(course))

    assert second["passed"] is True
    certificates = db_session.query(Certificate).filter(Certificate.user_id == user.id).all()
    assert len(certificates) == 1
    assert certificates[0].exam_attempt_id == first["id"]
    assert certificates[0].certificate_number == first["certificate_number"]


def test_result_notifications_are_recorded(client: TestClient, db_session: Session, exam_setup, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)

    take_exam(client, headers, course, wrong(course))
    take_exam(client, headers, course, correct(course))

    db_session.expire_all()
    kinds = sorted(
        n.notification_type
        for n in db_session.query(Notification).filter(Notification.user_id == user.id).all()
    )
    assert kinds == ["certificate_issued", "exam_failed", "exam_passed"]

    inbox = api_call(client, "GET", "/notifications/me", headers=headers).json()["data"]
    assert sorted(n["notification_type"] for n in inbox) == kinds
    assert all(n["is_read"] is False for n in inbox)
