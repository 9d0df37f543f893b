import pytest
from sqlalchemy.orm import Session

from app.core.constants import VerificationStatusEnum
from app.crud.certificate import certificate as crud_certificate
from app.models.certificate_verification import CertificateVerification
from app.schemas.exam_attempt import BooleanAnswer, ExamAttemptSubmit, OptionAnswer
from app.services.certificate import certificate_service
from app.services.exam_attempt import exam_attempt_service
from app.services.verification import normalize_certificate_number, verification_service


async def issue_certificate(db, exam_setup, current_user_for):
    user, course, _ = exam_setup()
    me = current_user_for(user)
    attempt = await exam_attempt_service.start_attempt(db, course.id, me)
    graded = await exam_attempt_service.submit_attempt(db, attempt.id, ExamAttemptSubmit(answers={
        f"{course.slug}-q1": OptionAnswer(selected_option=1),
        f"{course.slug}-q2": BooleanAnswer(value=True),
    }), me)
    return crud_certificate.get_by_number(db, certificate_number=graded.certificate_number)


@pytest.mark.parametrize("raw, expected", [
    ("  nsbs-abc123 ", "NSBS-ABC123"),
    ("NSBS-ABC123", "NSBS-ABC123"),
    ("", ""),
    (None, ""),
])
def test_normalize_certificate_number(raw, expected):
    assert normalize_certificate_number(raw) == expected


@pytest.mark.asyncio
async def test_valid_certificate_discloses_public_details(db_session: Session, exam_setup, current_user_for):
    certificate = await issue_certificate(db_session, exam_setup, current_user_for)

    result = verification_service.verify(
        db_session, certificate.certificate_number.lower(), ip_address="203.0.113.7", user_agent="curl/8"
    )

    assert result.status == VerificationStatusEnum.VALID
    assert result.certificate.certificate_number == certificate.certificate_number
    assert result.certificate.recipient_name == "Test Candidate"
    assert result.certificate.course_title == certificate.course_title

    log = db_session.query(CertificateVerification).one()
    assert log.certificate_id == certificate.id
    assert log.status == "valid"
    assert log.ip_address == "203.0.113.7"
    assert log.user_agent == "curl/8"


@pytest.mark.asyncio
async def test_revoked_certificate_reports_status_only(db_session: Session, exam_setup, current_user_for, admin_user):
    certificate = await issue_certificate(db_session, exam_setup, current_user_for)
    certificate_service.revoke(db_session, certificate.id, "fraud", current_user_for(admin_user))

    result = verification_service.verify(db_session, certificate.certificate_number)

    assert result.status == VerificationStatusEnum.REVOKED
    assert result.certificate is None
    assert db_session.query(CertificateVerification).filter_by(status="revoked").count() == 1


@pytest.mark.parametrize("number", ["NSBS-DOESNOTEXIST", "", "   ", "X" * 65])
def test_unknown_numbers_are_not_found_and_not_logged(db_session: Session, number):
    result = verification_service.verify(db_session, number)

    assert result.status == VerificationStatusEnum.NOT_FOUND
    assert result.certificate is None
    assert db_session.query(CertificateVerification).count() == 0


@pytest.mark.parametrize("number", ["NSBS-DOESNOTEXIST", "", "X" * 5000])
def test_every_not_found_goes_through_the_same_lookup(db_session: Session, number, monkeypatch):
    looked_up = []
    get_by_number = crud_certificate.get_by_number

    def tracking_get_by_number(db, certificate_number):
        looked_up.append(certificate_number)
        return get_by_number(db, certificate_number=certificate_number)

    monkeypatch.setattr(crud_certificate, "get_by_number", tracking_get_by_number)

    result = verification_service.verify(db_session, number)

    assert result.status == VerificationStatusEnum.NOT_FOUND
    assert len(looked_up) == 1
    assert len(looked_up[0]) <= 65
