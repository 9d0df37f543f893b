from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class Certificate(BaseModel):
    id: int
    certificate_number: str
    user_id: int
    course_id: int
    exam_attempt_id: int
    recipient_name: str
    course_title: str
    issued_at: datetime
    revoked: bool
    revoked_at: Optional[datetime] = None
    revocation_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CertificateWithLinks(Certificate):
    verification_url: str


class CertificateRevoke(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
