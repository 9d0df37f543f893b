from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.config import settings

class Exam(Base):
    __tablename__ = "exams"
    __table_args__ = (
        CheckConstraint("passing_score >= 0 AND passing_score <= 100", name="ck_exams_passing_score"),
        CheckConstraint("max_attempts >= 1", name="ck_exams_max_attempts"),
        CheckConstraint("time_limit_minutes >= 1", name="ck_exams_time_limit"),
    )

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, unique=True)
    title = Column(String, nullable=False)
    time_limit_minutes = Column(Integer, nullable=False, default=settings.EXAM_DEFAULT_TIME_LIMIT_MINUTES)
    passing_score = Column(Integer, nullable=False, default=settings.EXAM_DEFAULT_PASSING_SCORE)
    max_attempts = Column(Integer, nullable=False, default=settings.EXAM_DEFAULT_MAX_ATTEMPTS)
    shuffle_questions = Column(Boolean, nullable=False, default=False)
    is_published = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    course = relationship("Course", back_populates="exam")
    questions = relationship(
        "Question",
        back_populates="exam",
        cascade="all, delete-orphan",
        order_by="Question.position",
    )
