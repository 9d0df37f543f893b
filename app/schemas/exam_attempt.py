from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt
from typing import Annotated, Dict, List, Literal, Optional, Union
from datetime import datetime

from app.core.constants import ExamAttemptStatusEnum
from app.schemas.exam import CandidateQuestion


class OptionAnswer(BaseModel):
    kind: Literal["option"] = "option"
    selected_option: StrictInt


class BooleanAnswer(BaseModel):
    kind: Literal["boolean"] = "boolean"
    value: StrictBool


Answer = Annotated[Union[OptionAnswer, BooleanAnswer], Field(discriminator="kind")]


class ExamAttemptAnswers(BaseModel):
    answers: Dict[str, Answer] = Field(default_factory=dict)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "answers": {
                    "ethics-101-q1": {"kind": "option", "selected_option": 2},
                    "ethics-101-q2": {"kind": "boolean", "value": True},
                }
            }
        }
    )


class ExamAttemptSubmit(ExamAttemptAnswers):
    # Client-reported; the server clock stays authoritative.
    elapsed_seconds: int = Field(default=0, ge=0, le=86400)


class QuestionResult(BaseModel):
    question_key: str
    answered: bool
    correct: bool
    points_awarded: int
    points_possible: int
    selected_option: Optional[int] = None
    correct_answer: Optional[int] = None
    explanation: Optional[str] = None


class GradeResult(BaseModel):
    score: int
    passed: bool
    correct_count: int
    earned_points: int
    total_points: int
    results: List[QuestionResult]


class ExamAttempt(BaseModel):
    id: int
    user_id: int
    course_id: int
    attempt_number: int
    status: ExamAttemptStatusEnum
    started_at: datetime
    submitted_at: Optional[datetime] = None
    elapsed_seconds: Optional[int] = None
    time_limit_minutes: int
    passing_score: int
    score: Optional[int] = None
    passed: Optional[bool] = None
    correct_count: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class ExamAttemptDetails(ExamAttempt):
    deadline: datetime
    total_questions: int
    questions: List[CandidateQuestion] = []
    answers: Dict[str, Answer] = {}
    results: Optional[List[QuestionResult]] = None
    certificate_number: Optional[str] = None
