from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import PurchaseStatusEnum
from app.core.security import create_access_token
from app.utils import clock
from tests.helpers.asserts import api_call, assert_error, boolean, option


def test_start_attempt_hides_answer_key(client: TestClient, exam_setup, auth_headers):
    user, course, _ = exam_setup()

    response = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=auth_headers(user))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "in_progress"
    assert data["total_questions"] == 2
    assert data["results"] is None
    assert data["deadline"]
    for question in data["questions"]:
        assert "correct_answer" not in question
        assert "explanation" not in question


def test_start_requires_authentication(client: TestClient, exam_setup):
    _, course, _ = exam_setup()

    response = client.post(f"/exams/{course.id}/attempts", headers={"Authorization": "Bearer not-a-token"})

    assert_error(response, 401, "UNAUTHENTICATED")


def test_expired_token_is_rejected(client: TestClient, exam_setup):
    user, course, _ = exam_setup()
    token = create_access_token(user.id, expires_delta=timedelta(minutes=-5))

    response = client.get(f"/exams/{course.id}", headers={"Authorization": f"Bearer {token}"})

    assert_error(response, 401, "UNAUTHENTICATED")


def test_inactive_user_is_forbidden(client: TestClient, user_factory, course_factory, exam_factory, auth_headers):
    user = user_factory(is_active=False)
    course = course_factory()
    exam_factory(course)

    response = client.get(f"/exams/{course.id}", headers=auth_headers(user))

    assert_error(response, 403, "FORBIDDEN")


def test_start_without_purchase(client: TestClient, exam_setup, purchase_factory, auth_headers):
    user, course, _ = exam_setup(purchased=False)
    purchase_factory(user, course, status=PurchaseStatusEnum.REFUNDED)

    assert_error(client.post(f"/exams/{course.id}/attempts", headers=auth_headers(user)), 403, "PURCHASE_REQUIRED")


def test_start_for_course_without_exam(client: TestClient, user_factory, course_factory, purchase_factory, auth_headers):
    user = user_factory()
    course = course_factory()
    purchase_factory(user, course)

    assert_error(client.post(f"/exams/{course.id}/attempts", headers=auth_headers(user)), 404, "EXAM_NOT_CONFIGURED")


def test_unknown_course_is_not_found(client: TestClient, user_factory, auth_headers):
    assert_error(client.get("/exams/999999", headers=auth_headers(user_factory())), 404, "NOT_FOUND")


def test_record_answers_then_submit(client: TestClient, exam_setup, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)
    attempt_id = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=headers).json()["data"]["id"]

    saved = api_call(
        client, "PUT", f"/exams/attempts/{attempt_id}/answers", headers=headers,
        json={"answers": {f"{course.slug}-q1": option(1)}},
    ).json()["data"]
    assert saved["answers"] == {f"{course.slug}-q1": option(1)}

    result = api_call(
        client, "POST", f"/exams/attempts/{attempt_id}/submit", headers=headers,
        json={"answers": {f"{course.slug}-q2": boolean(True)}, "elapsed_seconds": 95},
    ).json()["data"]

    assert result["score"] == 100
    assert result["elapsed_seconds"] >= 95
    assert [r["correct"] for r in result["results"]] == [True, True]


def test_record_answers_with_unknown_question(client: TestClient, exam_setup, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)
    attempt_id = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=headers).json()["data"]["id"]

    response = client.put(
        f"/exams/attempts/{attempt_id}/answers", headers=headers, json={"answers": {"bogus": option(0)}}
    )

    body = assert_error(response, 422, "VALIDATION_ERROR")
    assert body["error"]["details"] == {"unknown_questions": ["bogus"]}


def test_malformed_answer_is_rejected_at_the_boundary(client: TestClient, exam_setup, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)
    attempt_id = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=headers).json()["data"]["id"]

    response = client.post(
        f"/exams/attempts/{attempt_id}/submit", headers=headers,
        json={"answers": {f"{course.slug}-q1": {"kind": "option", "selected_option": "B"}}},
    )

    body = assert_error(response, 422, "VALIDATION_ERROR")
    assert body["error"]["details"]["validation_errors"]


def test_submit_twice_returns_same_result(client: TestClient, exam_setup, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)
    attempt_id = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=headers).json()["data"]["id"]

    first = api_call(client, "POST", f"/exams/attempts/{attempt_id}/submit", headers=headers, json={"answers": {}}).json()["data"]
    second = api_call(
        client, "POST", f"/exams/attempts/{attempt_id}/submit", headers=headers,
        json={"answers": {f"{course.slug}-q1": option(1), f"{course.slug}-q2": boolean(True)}},
    ).json()["data"]

    assert first["score"] == second["score"] == 0
    assert second["submitted_at"] == first["submitted_at"]


def test_submit_other_users_attempt(client: TestClient, exam_setup, user_factory, auth_headers):
    user, course, _ = exam_setup()
    attempt_id = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=auth_headers(user)).json()["data"]["id"]

    response = client.post(
        f"/exams/attempts/{attempt_id}/submit", headers=auth_headers(user_factory()), json={"answers": {}}
    )

    assert_error(response, 403, "UNAUTHORIZED")


def test_answers_after_deadline_are_rejected(client: TestClient, exam_setup, auth_headers, monkeypatch):
    user, course, _ = exam_setup(time_limit_minutes=1)
    headers = auth_headers(user)
    attempt_id = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=headers).json()["data"]["id"]

    real_utcnow = clock.utcnow
    monkeypatch.setattr(clock, "utcnow", lambda: real_utcnow() + timedelta(seconds=60 + settings.EXAM_SUBMISSION_GRACE_SECONDS + 5))

    response = client.put(f"/exams/attempts/{attempt_id}/answers", headers=headers, json={"answers": {}})
    body = assert_error(response, 409, "ATTEMPT_NOT_ACTIVE")
    assert body["error"]["details"]["status"] == "expired"

    view = api_call(client, "GET", f"/exams/attempts/{attempt_id}", headers=headers).json()["data"]
    assert view["status"] == "expired"
    assert view["results"] is not None


def test_list_my_attempts(client: TestClient, exam_setup, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)
    api_call(client, "POST", f"/exams/{course.id}/attempts", headers=headers)

    attempts = api_call(client, "GET", f"/exams/attempts/me?course_id={course.id}", headers=headers).json()["data"]

    assert len(attempts) == 1
    assert attempts[0]["course_id"] == course.id


def test_get_missing_attempt(client: TestClient, user_factory, auth_headers):
    assert_error(client.get("/exams/attempts/424242", headers=auth_headers(user_factory())), 404, "NOT_FOUND")
