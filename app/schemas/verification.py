from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.core.constants import VerificationStatusEnum


class VerifiedCertificate(BaseModel):
    """Public details disclosed for a valid certificate only."""
    certificate_number: str
    recipient_name: str
    course_title: str
    issued_at: datetime


class VerificationResult(BaseModel):
    status: VerificationStatusEnum
    certificate: Optional[VerifiedCertificate] = None
