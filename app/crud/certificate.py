from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import CertificateConflict
from app.crud.base import CRUDBase
from app.models.certificate import Certificate

class CRUDCertificate(CRUDBase[Certificate, dict, dict]):

    def get_by_number(self, db: Session, certificate_number: str) -> Optional[Certificate]:
        return db.query(Certificate).filter(Certificate.certificate_number == certificate_number).first()

    def get_active_by_user_and_course(self, db: Session, user_id: int, course_id: int) -> Optional[Certificate]:
        return (
            db.query(Certificate)
            .filter(Certificate.user_id == user_id)
            .filter(Certificate.course_id == course_id)
            .filter(Certificate.revoked.is_(False))
            .first()
        )

    def get_by_user(self, db: Session, user_id: int) -> List[Certificate]:
        return (
            db.query(Certificate)
            .filter(Certificate.user_id == user_id)
            .order_by(Certificate.issued_at.desc())
            .all()
        )

    def count_active_by_user_and_course(self, db: Session, user_id: int, course_id: int) -> int:
        return (
            db.query(Certificate)
            .filter(Certificate.user_id == user_id)
            .filter(Certificate.course_id == course_id)
            .filter(Certificate.revoked.is_(False))
            .count()
        )

    def create_active(self, db: Session, *, obj_in: dict) -> Certificate:
        """Insert a new active certificate.

        Raises CertificateConflict when the active (user, course) or the
        certificate number uniqueness constraint rejects the row.
        """
        try:
            return self.create(db, obj_in=obj_in)
        except IntegrityError as e:
            db.rollback()
            raise CertificateConflict(details={"constraint": str(e.orig)}) from e

    def revoke(
        self, db: Session, *, db_obj: Certificate, reason: str, revoked_by: int, revoked_at: datetime
    ) -> Certificate:
        return self.update(
            db,
            db_obj=db_obj,
            obj_in={
                "revoked": True,
                "revoked_at": revoked_at,
                "revoked_by": revoked_by,
                "revocation_reason": reason,
            },
            commit=False,
        )

certificate = CRUDCertificate(Certificate)
