import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.constants import VerificationStatusEnum
from app.crud.certificate import certificate as crud_certificate
from app.crud.certificate_verification import certificate_verification as crud_certificate_verification
from app.schemas.verification import VerificationResult, VerifiedCertificate

logger = logging.getLogger(__name__)

MAX_CERTIFICATE_NUMBER_LENGTH = 64


def normalize_certificate_number(value: Optional[str]) -> str:
    return (value or "").strip().upper()


class VerificationService:
    """Public certificate lookup.

    Only a valid certificate discloses details, and only the public ones
    printed on the certificate itself. Unknown numbers all get the same
    ``not_found`` body.
    """

    def verify(
        self,
        db: Session,
        certificate_number: Optional[str],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> VerificationResult:
        # Longer than any issued number, so an over-long input still misses.
        number = normalize_certificate_number(certificate_number)[:MAX_CERTIFICATE_NUMBER_LENGTH + 1]
        certificate = crud_certificate.get_by_number(db, certificate_number=number)
        if not certificate:
            return VerificationResult(status=VerificationStatusEnum.NOT_FOUND)

        status = VerificationStatusEnum.REVOKED if certificate.revoked else VerificationStatusEnum.VALID
        crud_certificate_verification.create(db, obj_in={
            "certificate_id": certificate.id,
            "status": status.value,
            "ip_address": ip_address,
            "user_agent": (user_agent or "")[:512] or None,
        })

        if status == VerificationStatusEnum.REVOKED:
            logger.info(f"Verification of revoked certificate {number}")
            return VerificationResult(status=status)

        return VerificationResult(
            status=status,
            certificate=VerifiedCertificate(
                certificate_number=certificate.certificate_number,
                recipient_name=certificate.recipient_name,
                course_title=certificate.course_title,
                issued_at=certificate.issued_at,
            ),
        )


verification_service = VerificationService()
