from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import JSONB
from app.core.database import Base
from app.core.constants import QuestionTypeEnum

class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        UniqueConstraint("exam_id", "key", name="uq_questions_exam_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False)
    key = Column(String, nullable=False)  # stable public id, e.g. "ethics-101-q1"
    position = Column(Integer, nullable=False, default=0)
    question_text = Column(String, nullable=False)
    question_type = Column(Enum(QuestionTypeEnum), nullable=False, default=QuestionTypeEnum.MULTIPLE_CHOICE)
    options = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    correct_answer = Column(Integer, nullable=False)  # index into options
    points = Column(Integer, nullable=False, default=1)
    explanation = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    exam = relationship("Exam", back_populates="questions")
