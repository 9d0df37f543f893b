import logging
import secrets
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import AdminActionTypeEnum
from app.core.exceptions import CertificateConflict, NotFoundError, Unauthorized
from app.crud.admin_action import admin_action as crud_admin_action
from app.crud.certificate import certificate as crud_certificate
from app.crud.course import course as crud_course
from app.crud.user import user as crud_user
from app.models.certificate import Certificate as CertificateModel
from app.models.exam_attempt import ExamAttempt as ExamAttemptModel
from app.schemas.certificate import Certificate, CertificateWithLinks
from app.schemas.user import CurrentUser
from app.utils import clock

logger = logging.getLogger(__name__)

# A second collision on a 128-bit random number means something else is wrong.
MAX_ISSUE_TRIES = 3


def generate_certificate_number() -> str:
    return f"{settings.CERTIFICATE_NUMBER_PREFIX}-{secrets.token_hex(16).upper()}"


def verification_url(certificate_number: str) -> str:
    return f"{settings.CERTIFICATE_VERIFICATION_BASE_URL.rstrip('/')}/{certificate_number}"


class CertificateService:

    def _with_links(self, certificate: CertificateModel) -> CertificateWithLinks:
        return CertificateWithLinks(
            **Certificate.model_validate(certificate).model_dump(),
            verification_url=verification_url(certificate.certificate_number),
        )

    def issue_if_eligible(self, db: Session, attempt: ExamAttemptModel) -> Optional[CertificateModel]:
        """Return the active certificate for the attempt's (user, course).

        Mints one bound to ``attempt`` when none exists yet. Returns None for
        an attempt that did not pass.
        """
        if not attempt.passed:
            return None

        existing = crud_certificate.get_active_by_user_and_course(
            db, user_id=attempt.user_id, course_id=attempt.course_id
        )
        if existing:
            return existing

        user = crud_user.get(db, id=attempt.user_id)
        course = crud_course.get(db, id=attempt.course_id)
        if not user or not course:
            raise NotFoundError("User or course for this attempt no longer exists.")
        recipient_name = user.display_name
        course_title = course.title

        for _ in range(MAX_ISSUE_TRIES):
            try:
                certificate = crud_certificate.create_active(db, obj_in={
                    "certificate_number": generate_certificate_number(),
                    "user_id": attempt.user_id,
                    "course_id": attempt.course_id,
                    "exam_attempt_id": attempt.id,
                    "recipient_name": recipient_name,
                    "course_title": course_title,
                    "issued_at": clock.utcnow(),
                    "revoked": False,
                })
            except CertificateConflict:
                winner = crud_certificate.get_active_by_user_and_course(
                    db, user_id=attempt.user_id, course_id=attempt.course_id
                )
                if winner:
                    logger.warning(
                        f"Concurrent certificate issuance for user {attempt.user_id} course {attempt.course_id}; "
                        f"returning {winner.certificate_number}"
                    )
                    return winner
                continue

            logger.info(
                f"Certificate {certificate.certificate_number} issued to user {attempt.user_id} "
                f"for course {attempt.course_id} (attempt {attempt.id})"
            )
            return certificate

        raise CertificateConflict("Could not allocate a unique certificate number.")

    def revoke(self, db: Session, certificate_id: int, reason: str, admin: CurrentUser) -> Certificate:
        certificate = crud_certificate.get(db, id=certificate_id)
        if not certificate:
            raise NotFoundError("Certificate not found.")

        if certificate.revoked:
            return Certificate.model_validate(certificate)

        revoked_at = clock.utcnow()
        crud_certificate.revoke(
            db, db_obj=certificate, reason=reason, revoked_by=admin.id, revoked_at=revoked_at
        )
        crud_admin_action.create(db, obj_in={
            "admin_user_id": admin.id,
            "action_type": AdminActionTypeEnum.CERTIFICATE_REVOKE,
            "target_user_id": certificate.user_id,
            "target_certificate_id": certificate.id,
            "details": {
                "certificate_number": certificate.certificate_number,
                "reason": reason,
            },
        }, commit=False)
        db.commit()
        db.refresh(certificate)

        logger.info(f"Certificate {certificate.certificate_number} revoked by admin {admin.id}: {reason}")
        return Certificate.model_validate(certificate)

    def get_user_certificates(self, db: Session, current_user: CurrentUser) -> List[CertificateWithLinks]:
        return [self._with_links(c) for c in crud_certificate.get_by_user(db, user_id=current_user.id)]

    def get_certificate(self, db: Session, certificate_id: int, current_user: CurrentUser) -> CertificateWithLinks:
        certificate = crud_certificate.get(db, id=certificate_id)
        if not certificate:
            raise NotFoundError("Certificate not found.")
        if certificate.user_id != current_user.id and not current_user.is_admin:
            raise Unauthorized("You can only view your own certificates.")
        return self._with_links(certificate)


certificate_service = CertificateService()
