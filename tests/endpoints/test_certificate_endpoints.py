from fastapi.testclient import TestClient

from tests.helpers.asserts import api_call, assert_error, boolean, option


def pass_exam(client, headers, course):
    attempt_id = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=headers).json()["data"]["id"]
    return api_call(
        client, "POST", f"/exams/attempts/{attempt_id}/submit", headers=headers,
        json={"answers": {f"{course.slug}-q1": option(1), f"{course.slug}-q2": boolean(True)}},
    ).json()["data"]


def test_my_certificates_is_empty_before_passing(client: TestClient, user_factory, auth_headers):
    response = api_call(client, "GET", "/certificates/me", headers=auth_headers(user_factory()))
    assert response.json()["data"] == []


def test_get_certificate_by_owner_and_stranger(client: TestClient, exam_setup, user_factory, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)
    pass_exam(client, headers, course)
    certificate = api_call(client, "GET", "/certificates/me", headers=headers).json()["data"][0]

    own = api_call(client, "GET", f"/certificates/{certificate['id']}", headers=headers).json()["data"]
    assert own["verification_url"].endswith(own["certificate_number"])
    assert own["revoked"] is False

    assert_error(client.get(f"/certificates/{certificate['id']}", headers=auth_headers(user_factory())), 403, "UNAUTHORIZED")


def test_admin_can_view_any_certificate(client: TestClient, exam_setup, admin_user, auth_headers):
    user, course, _ = exam_setup()
    pass_exam(client, auth_headers(user), course)
    certificate_id = api_call(client, "GET", "/certificates/me", headers=auth_headers(user)).json()["data"][0]["id"]

    response = api_call(client, "GET", f"/certificates/{certificate_id}", headers=auth_headers(admin_user))

    assert response.json()["data"]["user_id"] == user.id


def test_missing_certificate(client: TestClient, user_factory, auth_headers):
    assert_error(client.get("/certificates/31337", headers=auth_headers(user_factory())), 404, "NOT_FOUND")
