from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Union

from app.core.constants import QuestionTypeEnum


class QuestionDefinition(BaseModel):
    key: str
    question_text: str
    question_type: QuestionTypeEnum = QuestionTypeEnum.MULTIPLE_CHOICE
    options: List[str]
    correct_answer: int
    points: int = 1
    explanation: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class ExamDefinition(BaseModel):
    exam_id: int
    course_id: int
    title: str
    time_limit_minutes: int
    passing_score: int
    max_attempts: int
    shuffle_questions: bool = False
    questions: List[QuestionDefinition]

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)


class CandidateQuestion(BaseModel):
    """A question as shown to a candidate: never carries the answer key."""
    key: str
    question_text: str
    question_type: QuestionTypeEnum
    options: List[str]

    model_config = ConfigDict(use_enum_values=True)


class ExamOverview(BaseModel):
    course_id: int
    exam_title: str
    question_count: int
    time_limit_minutes: int
    passing_score: int
    max_attempts: int
    attempts_used: int
    attempts_remaining: int
    has_certificate: bool
    has_purchase: bool
    in_progress_attempt_id: Optional[int] = None
    can_start: bool


class QuestionFileEntry(BaseModel):
    """One entry of a course's ``exam/questions.json`` file."""
    id: Optional[str] = None
    question: str
    question_type: QuestionTypeEnum = QuestionTypeEnum.MULTIPLE_CHOICE
    options: List[str] = Field(default_factory=list)
    # Either the option index or the option text.
    correct_answer: Union[int, str]
    points: int = 1
    explanation: Optional[str] = None


class ExamFile(BaseModel):
    title: str
    time_limit_minutes: Optional[int] = None
    passing_score: Optional[int] = None
    max_attempts: Optional[int] = None
    shuffle_questions: bool = False
    questions: List[QuestionFileEntry]
