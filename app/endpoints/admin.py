from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.certificate import Certificate, CertificateRevoke
from app.schemas.response import APIResponse
from app.schemas.user import CurrentUser
from app.services.certificate import certificate_service
from app.services.exam_attempt import exam_attempt_service
from app.services.question_bank import question_bank_service
from app.utils import deps

router = APIRouter()

@router.post("/certificates/{certificate_id}/revoke", response_model=APIResponse[Certificate])
async def revoke_certificate(
    *,
    certificate_id: int,
    revoke_in: CertificateRevoke,
    db: Session = Depends(deps.get_transactional_db),
    admin: CurrentUser = Depends(deps.require_admin)
):
    certificate = certificate_service.revoke(db, certificate_id=certificate_id, reason=revoke_in.reason, admin=admin)
    return APIResponse(message="Certificate revoked", data=certificate)

@router.post("/exams/{course_id}/cache/invalidate", response_model=APIResponse[dict], dependencies=[Depends(deps.require_admin)])
async def invalidate_question_bank_cache(*, course_id: int):
    removed = question_bank_service.invalidate(course_id)
    return APIResponse(message="Question bank cache invalidated", data={"course_id": course_id, "keys_removed": removed})

@router.post("/attempts/expire-overdue", response_model=APIResponse[dict], dependencies=[Depends(deps.require_admin)])
async def expire_overdue_attempts(*, db: Session = Depends(deps.get_transactional_db)):
    expired = await exam_attempt_service.expire_overdue_attempts(db)
    return APIResponse(message="Overdue attempts processed", data={"expired": expired})
