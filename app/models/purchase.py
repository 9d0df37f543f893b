from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import PurchaseStatusEnum

class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    status = Column(Enum(PurchaseStatusEnum), nullable=False, default=PurchaseStatusEnum.PENDING)
    amount_paid = Column(Integer, nullable=False, default=0)  # in cents
    currency = Column(String, nullable=False, default="usd")
    stripe_session_id = Column(String, unique=True, nullable=True)
    purchased_at = Column(DateTime(timezone=True), server_default=func.now())
    refunded_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="purchases")
    course = relationship("Course", back_populates="purchases")
