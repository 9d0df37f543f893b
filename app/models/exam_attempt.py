from sqlalchemy import (
    Column, Integer, DateTime, ForeignKey, Boolean, Enum, JSON,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import JSONB
from app.core.database import Base
from app.core.constants import ExamAttemptStatusEnum

class ExamAttempt(Base):
    __tablename__ = "exam_attempts"
    __table_args__ = (
        # Serializes concurrent starts: only one row may claim a given slot.
        UniqueConstraint("user_id", "course_id", "attempt_number", name="uq_exam_attempts_user_course_number"),
        CheckConstraint("attempt_number >= 1", name="ck_exam_attempts_number_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False)
    attempt_number = Column(Integer, nullable=False)
    status = Column(Enum(ExamAttemptStatusEnum), nullable=False, default=ExamAttemptStatusEnum.IN_PROGRESS, index=True)

    # Exam rules and questions as presented when the attempt started.
    questions_snapshot = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    time_limit_minutes = Column(Integer, nullable=False)
    passing_score = Column(Integer, nullable=False)

    started_at = Column(DateTime(timezone=True), nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    elapsed_seconds = Column(Integer, nullable=True)
    score = Column(Integer, nullable=True)
    passed = Column(Boolean, nullable=True)
    correct_count = Column(Integer, nullable=True)
    results = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="exam_attempts")
    course = relationship("Course")
    exam = relationship("Exam")
    user_answers = relationship("UserAnswer", back_populates="exam_attempt", cascade="all, delete-orphan")
    certificate = relationship("Certificate", back_populates="exam_attempt", uselist=False)
