from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Index, text
from sqlalchemy.orm import relationship
from app.core.database import Base

class Certificate(Base):
    __tablename__ = "certificates"
    __table_args__ = (
        # At most one active certificate per (user, course); revoked rows stay as audit trail.
        Index(
            "uq_certificates_active_user_course",
            "user_id",
            "course_id",
            unique=True,
            postgresql_where=text("revoked = false"),
            sqlite_where=text("revoked = 0"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    certificate_number = Column(String, unique=True, index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    exam_attempt_id = Column(Integer, ForeignKey("exam_attempts.id"), nullable=False, unique=True)
    recipient_name = Column(String, nullable=False)
    course_title = Column(String, nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=False)
    revoked = Column(Boolean, nullable=False, default=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    revoked_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    revocation_reason = Column(String, nullable=True)

    user = relationship("User", back_populates="certificates", foreign_keys=[user_id])
    course = relationship("Course")
    exam_attempt = relationship("ExamAttempt", back_populates="certificate")
    verifications = relationship("CertificateVerification", back_populates="certificate")
