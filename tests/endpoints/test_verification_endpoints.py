from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.crud.certificate import certificate as crud_certificate
from tests.helpers.asserts import api_call, boolean, option


def issue(client, exam_setup, auth_headers):
    user, course, _ = exam_setup()
    headers = auth_headers(user)
    attempt_id = api_call(client, "POST", f"/exams/{course.id}/attempts", headers=headers).json()["data"]["id"]
    return api_call(
        client, "POST", f"/exams/attempts/{attempt_id}/submit", headers=headers,
        json={"answers": {f"{course.slug}-q1": option(1), f"{course.slug}-q2": boolean(True)}},
    ).json()["data"]["certificate_number"]


def test_verify_is_public(client: TestClient, exam_setup, auth_headers):
    number = issue(client, exam_setup, auth_headers)

    by_path = api_call(client, "GET", f"/verify/{number.lower()}").json()["data"]
    by_query = api_call(client, "GET", f"/verify?number=%20{number}%20").json()["data"]

    assert by_path["status"] == by_query["status"] == "valid"
    assert by_path["certificate"]["certificate_number"] == number
    assert set(by_path["certificate"]) == {"certificate_number", "recipient_name", "course_title", "issued_at"}


def test_unknown_number_is_not_found_with_success_envelope(client: TestClient):
    response = api_call(client, "GET", "/verify/NSBS-0000")

    assert response.json()["data"] == {"status": "not_found", "certificate": None}


def test_overlong_query_is_not_found_like_the_path_form(client: TestClient):
    by_query = api_call(client, "GET", f"/verify?number={'X' * 200}").json()["data"]
    by_path = api_call(client, "GET", f"/verify/{'X' * 200}").json()["data"]

    assert by_query == by_path == {"status": "not_found", "certificate": None}


def test_revoked_certificate_discloses_status_only(client: TestClient, db_session: Session, exam_setup, auth_headers, admin_user):
    number = issue(client, exam_setup, auth_headers)
    certificate = crud_certificate.get_by_number(db_session, certificate_number=number)

    api_call(
        client, "POST", f"/admin/certificates/{certificate.id}/revoke",
        headers=auth_headers(admin_user), json={"reason": "Identity fraud"},
    )

    data = api_call(client, "GET", f"/verify/{number}").json()["data"]
    assert data == {"status": "revoked", "certificate": None}
