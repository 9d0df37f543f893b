from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.schemas.verification import VerificationResult
from app.services.verification import verification_service
from app.utils import deps

router = APIRouter()


def _verify(db: Session, request: Request, certificate_number: str) -> APIResponse[VerificationResult]:
    result = verification_service.verify(
        db,
        certificate_number=certificate_number,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return APIResponse(message="Verification complete", data=result)


@router.get("", response_model=APIResponse[VerificationResult])
async def verify_certificate_by_query(
    request: Request,
    number: str = Query(...),
    db: Session = Depends(deps.get_db)
):
    return _verify(db, request, number)


@router.get("/{certificate_number}", response_model=APIResponse[VerificationResult])
async def verify_certificate(
    certificate_number: str,
    request: Request,
    db: Session = Depends(deps.get_db)
):
    return _verify(db, request, certificate_number)
