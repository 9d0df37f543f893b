from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.schemas.certificate import CertificateWithLinks
from app.schemas.user import CurrentUser
from app.services.certificate import certificate_service
from app.utils import deps

router = APIRouter()

@router.get("/me", response_model=APIResponse[List[CertificateWithLinks]])
async def get_my_certificates(
    db: Session = Depends(deps.get_db),
    current_user: CurrentUser = Depends(deps.get_current_user)
):
    certificates = certificate_service.get_user_certificates(db, current_user=current_user)
    return APIResponse(message="Certificates retrieved successfully", data=certificates)

@router.get("/{certificate_id}", response_model=APIResponse[CertificateWithLinks])
async def get_certificate(
    *,
    db: Session = Depends(deps.get_db),
    certificate_id: int,
    current_user: CurrentUser = Depends(deps.get_current_user)
):
    certificate = certificate_service.get_certificate(db, certificate_id=certificate_id, current_user=current_user)
    return APIResponse(message="Certificate retrieved successfully", data=certificate)
