from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import AnswerKindEnum

class UserAnswer(Base):
    __tablename__ = "user_answers"
    __table_args__ = (
        UniqueConstraint("exam_attempt_id", "question_key", name="uq_user_answers_attempt_question"),
    )

    id = Column(Integer, primary_key=True, index=True)
    exam_attempt_id = Column(Integer, ForeignKey("exam_attempts.id"), nullable=False, index=True)
    question_key = Column(String, nullable=False)
    kind = Column(Enum(AnswerKindEnum), nullable=False)
    selected_option = Column(Integer, nullable=True)
    boolean_value = Column(Boolean, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    exam_attempt = relationship("ExamAttempt", back_populates="user_answers")
