from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.utils import deps
from app.schemas.exam import ExamOverview
from app.schemas.exam_attempt import ExamAttempt, ExamAttemptAnswers, ExamAttemptDetails, ExamAttemptSubmit
from app.schemas.user import CurrentUser
from app.services.exam_attempt import exam_attempt_service

router = APIRouter()


@router.get("/attempts/me", response_model=APIResponse[List[ExamAttempt]])
async def get_my_exam_attempts(
    db: Session = Depends(deps.get_db),
    current_user: CurrentUser = Depends(deps.get_current_user),
    course_id: Optional[int] = Query(None)
):
    attempts = exam_attempt_service.get_user_attempts(db, current_user=current_user, course_id=course_id)
    return APIResponse(message="Exam attempts retrieved successfully", data=attempts)


@router.get("/attempts/{attempt_id}", response_model=APIResponse[ExamAttemptDetails])
async def get_exam_attempt(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    current_user: CurrentUser = Depends(deps.get_current_user)
):
    attempt = exam_attempt_service.get_attempt(db, attempt_id=attempt_id, current_user=current_user)
    return APIResponse(message="Exam attempt retrieved successfully", data=attempt)


@router.put("/attempts/{attempt_id}/answers", response_model=APIResponse[ExamAttemptDetails])
async def record_answers(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    answers_in: ExamAttemptAnswers,
    current_user: CurrentUser = Depends(deps.get_current_user)
):
    attempt = await exam_attempt_service.record_answers(
        db, attempt_id=attempt_id, answers_in=answers_in, current_user=current_user
    )
    return APIResponse(message="Answers saved successfully", data=attempt)


@router.post("/attempts/{attempt_id}/submit", response_model=APIResponse[ExamAttemptDetails])
async def submit_exam_attempt(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    submission: ExamAttemptSubmit,
    current_user: CurrentUser = Depends(deps.get_current_user)
):
    attempt = await exam_attempt_service.submit_attempt(
        db, attempt_id=attempt_id, submission=submission, current_user=current_user
    )
    return APIResponse(message="Exam attempt graded", data=attempt)


@router.get("/{course_id}", response_model=APIResponse[ExamOverview])
async def get_exam_overview(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    current_user: CurrentUser = Depends(deps.get_current_user)
):
    overview = exam_attempt_service.get_exam_overview(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Exam overview retrieved successfully", data=overview)


@router.post("/{course_id}/attempts", response_model=APIResponse[ExamAttemptDetails], status_code=status.HTTP_201_CREATED)
async def start_exam_attempt(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: int,
    current_user: CurrentUser = Depends(deps.get_current_user)
):
    attempt = await exam_attempt_service.start_attempt(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Exam attempt started", data=attempt)
