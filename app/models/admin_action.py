from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import JSONB
from app.core.database import Base
from app.core.constants import AdminActionTypeEnum

class AdminAction(Base):
    __tablename__ = "admin_actions"

    id = Column(Integer, primary_key=True, index=True)
    admin_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    action_type = Column(Enum(AdminActionTypeEnum), nullable=False)
    target_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    target_certificate_id = Column(Integer, ForeignKey("certificates.id"), nullable=True)
    details = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    performed_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    admin_user = relationship("User", foreign_keys=[admin_user_id])
    target_certificate = relationship("Certificate")
