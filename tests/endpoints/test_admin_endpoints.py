from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.cache_config import CACHE_KEYS
from app.models.admin_action import AdminAction
from app.utils import clock
from tests.helpers.asserts import api_call, assert_error, boolean, option


def test_revoke_requires_admin(client: TestClient, exam_setup, auth_headers):
    user, _, _ = exam_setup()

    response = client.post("/admin/certificates/1/revoke", headers=auth_headers(user), json={"reason": "nope"})

    assert_error(response, 403, "UNAUTHORIZED")


def test_revoke_requires_reason(client: TestClient, admin_user, auth_headers):
    response = client.post("/admin/certificates/1/revoke", headers=auth_headers(admin_user), json={"reason": ""})

    assert_error(response, 422, "VALIDATION_ERROR")


def test_revoke_certificate(client: TestClient, db_session: Session, exam_setup, admin_user, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)
    attempt_id = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=headers).json()["data"]["id"]
    api_call(
        client, "POST", f"/exams/attempts/{attempt_id}/submit", headers=headers,
        json={"answers": {f"{course.slug}-q1": option(1), f"{course.slug}-q2": boolean(True)}},
    )
    certificate_id = api_call(client, "GET", "/certificates/me", headers=headers).json()["data"][0]["id"]

    revoked = api_call(
        client, "POST", f"/admin/certificates/{certificate_id}/revoke",
        headers=auth_headers(admin_user), json={"reason": "Proctoring violation"},
    ).json()["data"]

    assert revoked["revoked"] is True
    assert revoked["revocation_reason"] == "Proctoring violation"
    assert db_session.query(AdminAction).filter(AdminAction.target_certificate_id == certificate_id).count() == 1

    overview = api_call(client, "GET", f"/exams/{course.id}", headers=headers).json()["data"]
    assert overview["has_certificate"] is False


def test_revoke_missing_certificate(client: TestClient, admin_user, auth_headers):
    response = client.post("/admin/certificates/8080/revoke", headers=auth_headers(admin_user), json={"reason": "gone"})

    assert_error(response, 404, "NOT_FOUND")


def test_invalidate_question_bank_cache(client: TestClient, exam_setup, admin_user, auth_headers):
    user, course, _ = exam_setup()
    api_call(client, "GET", f"/exams/{course.id}", headers=auth_headers(user))
    assert cache.get(CACHE_KEYS["exam_definition"].format(course.id)) is not None

    data = api_call(
        client, "POST", f"/admin/exams/{course.id}/cache/invalidate", headers=auth_headers(admin_user)
    ).json()["data"]

    assert data == {"course_id": course.id, "keys_removed": 1}
    assert cache.get(CACHE_KEYS["exam_definition"].format(course.id)) is None


def test_expire_overdue_attempts(client: TestClient, exam_setup, admin_user, auth_headers, monkeypatch):
    user, course, _ = exam_setup(time_limit_minutes=15)
    headers = auth_headers(user)
    attempt_id = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=headers).json()["data"]["id"]

    real_utcnow = clock.utcnow
    monkeypatch.setattr(clock, "utcnow", lambda: real_utcnow() + timedelta(hours=2))

    data = api_call(client, "POST", "/admin/attempts/expire-overdue", headers=auth_headers(admin_user)).json()["data"]

    assert data == {"expired": 1}
    attempt = api_call(client, "GET", f"/exams/attempts/{attempt_id}", headers=headers).json()["data"]
    assert attempt["status"] == "expired"
    assert attempt["elapsed_seconds"] == 15 * 60
