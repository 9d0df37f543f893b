import logging
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import ExamAttemptStatusEnum, NotificationEventEnum, TERMINAL_ATTEMPT_STATUSES
from app.core.exceptions import (
    AttemptLimitExceeded,
    AttemptNotActive,
    ExamAlreadyPassed,
    NotFoundError,
    PurchaseRequired,
    Unauthorized,
    ValidationError,
)
from app.crud.certificate import certificate as crud_certificate
from app.crud.course import course as crud_course
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.crud.purchase import purchase as crud_purchase
from app.crud.user_answer import user_answer as crud_user_answer
from app.models.certificate import Certificate as CertificateModel
from app.models.exam_attempt import ExamAttempt as ExamAttemptModel
from app.schemas.exam import CandidateQuestion, ExamOverview, QuestionDefinition
from app.schemas.exam_attempt import (
    Answer,
    ExamAttempt,
    ExamAttemptAnswers,
    ExamAttemptDetails,
    ExamAttemptSubmit,
    GradeResult,
    QuestionResult,
)
from app.schemas.user import CurrentUser
from app.services.certificate import certificate_service, verification_url
from app.services.notification import notification_service
from app.services.question_bank import question_bank_service
from app.services.scoring import scoring_service
from app.utils import clock

logger = logging.getLogger(__name__)

# Bounded retries when a concurrent start claims the same attempt number.
MAX_START_TRIES = 3

_shuffler = random.SystemRandom()


class ExamAttemptService:

    @staticmethod
    def deadline_for(attempt: ExamAttemptModel) -> datetime:
        return clock.as_utc(attempt.started_at) + timedelta(minutes=attempt.time_limit_minutes)

    @staticmethod
    def _allowed_seconds(attempt: ExamAttemptModel) -> int:
        return attempt.time_limit_minutes * 60 + settings.EXAM_SUBMISSION_GRACE_SECONDS

    def is_overdue(self, attempt: ExamAttemptModel, now: datetime) -> bool:
        elapsed = (now - clock.as_utc(attempt.started_at)).total_seconds()
        return elapsed > self._allowed_seconds(attempt)

    @staticmethod
    def _snapshot(attempt: ExamAttemptModel) -> List[QuestionDefinition]:
        return [QuestionDefinition.model_validate(q) for q in attempt.questions_snapshot]

    def _require_owner(self, attempt: ExamAttemptModel, current_user: CurrentUser, allow_admin: bool = False):
        if attempt.user_id == current_user.id:
            return
        if allow_admin and current_user.is_admin:
            return
        raise Unauthorized("You can only act on your own exam attempts.")

    def _get_active_attempt(self, db: Session, attempt_id: int, current_user: CurrentUser) -> ExamAttemptModel:
        attempt = crud_exam_attempt.get(db, id=attempt_id)
        if not attempt:
            raise AttemptNotActive("Exam attempt not found.", details={"attempt_id": attempt_id})
        self._require_owner(attempt, current_user)
        if attempt.status in TERMINAL_ATTEMPT_STATUSES:
            raise AttemptNotActive(details={"attempt_id": attempt_id, "status": attempt.status.value})
        return attempt

    def _build_details(self, db: Session, attempt: ExamAttemptModel) -> ExamAttemptDetails:
        questions = self._snapshot(attempt)
        terminal = attempt.status in TERMINAL_ATTEMPT_STATUSES
        results = None
        if terminal and attempt.results:
            results = [QuestionResult.model_validate(r) for r in attempt.results]

        return ExamAttemptDetails(
            **ExamAttempt.model_validate(attempt).model_dump(),
            deadline=self.deadline_for(attempt),
            total_questions=len(questions),
            questions=[CandidateQuestion(**q.model_dump()) for q in questions],
            answers=crud_user_answer.get_answer_map(db, exam_attempt_id=attempt.id),
            results=results,
            certificate_number=attempt.certificate.certificate_number if attempt.certificate else None,
        )

    async def start_attempt(self, db: Session, course_id: int, current_user: CurrentUser) -> ExamAttemptDetails:
        """Begin a timed attempt, or resume the caller's live one for the course."""
        course = crud_course.get(db, id=course_id)
        if not course:
            raise NotFoundError("Course not found.", details={"course_id": course_id})

        definition = question_bank_service.load(db, course_id)

        if not crud_purchase.has_completed_purchase(db, user_id=current_user.id, course_id=course_id):
            raise PurchaseRequired(details={"course_id": course_id})

        in_progress = crud_exam_attempt.get_in_progress_by_user_and_course(
            db, user_id=current_user.id, course_id=course_id
        )
        if in_progress:
            if not self.is_overdue(in_progress, clock.utcnow()):
                logger.info(f"User {current_user.id} resumed attempt {in_progress.id} for course {course_id}")
                return self._build_details(db, in_progress)
            await self._expire(db, in_progress)

        if settings.EXAM_BLOCK_RETAKE_AFTER_PASS and crud_exam_attempt.has_passed(
            db, user_id=current_user.id, course_id=course_id
        ):
            raise ExamAlreadyPassed(details={"course_id": course_id})

        snapshot = [q.model_dump(mode="json") for q in definition.questions]
        if definition.shuffle_questions:
            _shuffler.shuffle(snapshot)

        for _ in range(MAX_START_TRIES):
            prior_count = crud_exam_attempt.count_by_user_and_course(
                db, user_id=current_user.id, course_id=course_id
            )
            if prior_count >= definition.max_attempts:
                raise AttemptLimitExceeded(details={
                    "max_attempts": definition.max_attempts,
                    "attempts_used": prior_count,
                })

            try:
                attempt = crud_exam_attempt.create(db, obj_in={
                    "user_id": current_user.id,
                    "course_id": course_id,
                    "exam_id": definition.exam_id,
                    "attempt_number": prior_count + 1,
                    "status": ExamAttemptStatusEnum.IN_PROGRESS,
                    "questions_snapshot": snapshot,
                    "time_limit_minutes": definition.time_limit_minutes,
                    "passing_score": definition.passing_score,
                    "started_at": clock.utcnow(),
                })
            except IntegrityError:
                db.rollback()
                logger.warning(
                    f"Attempt number {prior_count + 1} for user {current_user.id} course {course_id} "
                    f"was claimed concurrently"
                )
                # Losing the last slot is a limit failure; otherwise resume the winner.
                winner = crud_exam_attempt.get_in_progress_by_user_and_course(
                    db, user_id=current_user.id, course_id=course_id
                )
                if (
                    winner
                    and not self.is_overdue(winner, clock.utcnow())
                    and winner.attempt_number < definition.max_attempts
                ):
                    return self._build_details(db, winner)
                continue

            logger.info(
                f"User {current_user.id} started attempt {attempt.attempt_number}/{definition.max_attempts} "
                f"(id {attempt.id}) for course {course_id}"
            )
            return self._build_details(db, attempt)

        raise AttemptLimitExceeded(details={"max_attempts": definition.max_attempts})

    async def record_answers(
        self, db: Session, attempt_id: int, answers_in: ExamAttemptAnswers, current_user: CurrentUser
    ) -> ExamAttemptDetails:
        attempt = self._get_active_attempt(db, attempt_id, current_user)

        if self.is_overdue(attempt, clock.utcnow()):
            await self._expire(db, attempt)
            raise AttemptNotActive(
                "The time limit for this attempt has passed.",
                details={"attempt_id": attempt_id, "status": ExamAttemptStatusEnum.EXPIRED.value},
            )

        known_keys = {q.key for q in self._snapshot(attempt)}
        unknown = sorted(set(answers_in.answers) - known_keys)
        if unknown:
            raise ValidationError(
                "Answers reference questions that are not part of this attempt.",
                details={"unknown_questions": unknown},
            )

        crud_user_answer.upsert_many(db, exam_attempt_id=attempt.id, answers=answers_in.answers)
        return self._build_details(db, attempt)

    async def submit_attempt(
        self, db: Session, attempt_id: int, submission: ExamAttemptSubmit, current_user: CurrentUser
    ) -> ExamAttemptDetails:
        """Grade an attempt exactly once.

        Re-submitting a terminal attempt returns the stored result. An attempt
        past its time limit (plus grace) is graded as ``expired``.
        """
        attempt = crud_exam_attempt.get(db, id=attempt_id)
        if not attempt:
            raise AttemptNotActive("Exam attempt not found.", details={"attempt_id": attempt_id})
        self._require_owner(attempt, current_user)

        if attempt.status in TERMINAL_ATTEMPT_STATUSES:
            if attempt.passed and attempt.certificate is None:
                self._issue_certificate(db, attempt)
                db.refresh(attempt)
            return self._build_details(db, attempt)

        now = clock.utcnow()
        server_elapsed = max(int((now - clock.as_utc(attempt.started_at)).total_seconds()), 0)
        elapsed = max(server_elapsed, submission.elapsed_seconds)
        if elapsed > self._allowed_seconds(attempt):
            status = ExamAttemptStatusEnum.EXPIRED
        else:
            status = ExamAttemptStatusEnum.SUBMITTED

        known_keys = {q.key for q in self._snapshot(attempt)}
        ignored = sorted(set(submission.answers) - known_keys)
        if ignored:
            logger.warning(f"Attempt {attempt_id}: ignoring answers for unknown questions {ignored}")

        answers = crud_user_answer.get_answer_map(db, exam_attempt_id=attempt.id)
        answers.update({k: v for k, v in submission.answers.items() if k in known_keys})

        await self._finalize(db, attempt, answers, status, elapsed, now)

        return self._build_details(db, crud_exam_attempt.get(db, id=attempt_id))

    async def expire_overdue_attempts(self, db: Session) -> int:
        """Force-submit every in-progress attempt past its time limit.

        Safe to run concurrently with user submissions; returns how many
        attempts this run finalized.
        """
        now = clock.utcnow()
        expired = 0
        for attempt in crud_exam_attempt.get_all_in_progress(db):
            if not self.is_overdue(attempt, now):
                continue
            if await self._expire(db, attempt, now):
                expired += 1

        logger.info(f"Expiry sweep finalized {expired} overdue attempt(s)")
        return expired

    async def _expire(self, db: Session, attempt: ExamAttemptModel, now: Optional[datetime] = None) -> bool:
        answers = crud_user_answer.get_answer_map(db, exam_attempt_id=attempt.id)
        return await self._finalize(
            db,
            attempt,
            answers,
            ExamAttemptStatusEnum.EXPIRED,
            attempt.time_limit_minutes * 60,
            now or clock.utcnow(),
        )

    async def _finalize(
        self,
        db: Session,
        attempt: ExamAttemptModel,
        answers: Dict[str, Answer],
        status: ExamAttemptStatusEnum,
        elapsed_seconds: int,
        finished_at: datetime,
    ) -> bool:
        attempt_id = attempt.id
        result = scoring_service.grade(self._snapshot(attempt), answers, attempt.passing_score)

        crud_user_answer.upsert_many(db, exam_attempt_id=attempt_id, answers=answers, commit=False)
        won = crud_exam_attempt.finalize(db, attempt_id, {
            "status": status,
            "submitted_at": finished_at,
            "elapsed_seconds": elapsed_seconds,
            "score": result.score,
            "passed": result.passed,
            "correct_count": result.correct_count,
            "results": [r.model_dump() for r in result.results],
        })
        if not won:
            db.rollback()
            logger.info(f"Attempt {attempt_id} was already finalized; skipping")
            return False

        db.commit()
        db.refresh(attempt)
        logger.info(
            f"Attempt {attempt_id} graded as {status.value}: score={result.score} passed={result.passed} "
            f"({result.correct_count}/{len(result.results)} correct)"
        )

        certificate = self._issue_certificate(db, attempt) if result.passed else None
        await self._notify_result(db, attempt, result, certificate)
        return True

    def _issue_certificate(self, db: Session, attempt: ExamAttemptModel) -> Optional[CertificateModel]:
        """Issue the certificate for a passed attempt.

        Failures are logged and leave the graded attempt as is; the next
        submit of the same attempt retries issuance.
        """
        attempt_id = attempt.id
        try:
            return certificate_service.issue_if_eligible(db, attempt)
        except Exception as e:
            db.rollback()
            logger.error(f"Certificate issuance failed for attempt {attempt_id}: {e}", exc_info=True)
            return None

    async def _notify_result(
        self,
        db: Session,
        attempt: ExamAttemptModel,
        result: GradeResult,
        certificate: Optional[CertificateModel],
    ):
        course = crud_course.get(db, id=attempt.course_id)
        course_title = course.title if course else ""
        attempts_used = crud_exam_attempt.count_by_user_and_course(
            db, user_id=attempt.user_id, course_id=attempt.course_id
        )
        max_attempts = attempt.exam.max_attempts if attempt.exam else attempts_used

        event = NotificationEventEnum.EXAM_PASSED if result.passed else NotificationEventEnum.EXAM_FAILED
        await notification_service.notify(attempt.user_id, event, {
            "attempt_id": attempt.id,
            "course_id": attempt.course_id,
            "course_title": course_title,
            "score": result.score,
            "passing_score": attempt.passing_score,
            "attempts_remaining": max(max_attempts - attempts_used, 0),
        })

        if certificate and certificate.exam_attempt_id == attempt.id:
            await notification_service.notify(attempt.user_id, NotificationEventEnum.CERTIFICATE_ISSUED, {
                "certificate_id": certificate.id,
                "certificate_number": certificate.certificate_number,
                "course_id": attempt.course_id,
                "course_title": course_title,
                "verification_url": verification_url(certificate.certificate_number),
            })

    def get_attempt(self, db: Session, attempt_id: int, current_user: CurrentUser) -> ExamAttemptDetails:
        attempt = crud_exam_attempt.get(db, id=attempt_id)
        if not attempt:
            raise NotFoundError("Exam attempt not found.")
        self._require_owner(attempt, current_user, allow_admin=True)
        return self._build_details(db, attempt)

    def get_user_attempts(
        self, db: Session, current_user: CurrentUser, course_id: Optional[int] = None
    ) -> List[ExamAttempt]:
        if course_id is not None:
            attempts = crud_exam_attempt.get_by_user_and_course(db, user_id=current_user.id, course_id=course_id)
        else:
            attempts = crud_exam_attempt.get_all_by_user(db, user_id=current_user.id)
        return [ExamAttempt.model_validate(a) for a in attempts]

    def get_exam_overview(self, db: Session, course_id: int, current_user: CurrentUser) -> ExamOverview:
        if not crud_course.get(db, id=course_id):
            raise NotFoundError("Course not found.", details={"course_id": course_id})

        definition = question_bank_service.load(db, course_id)
        attempts_used = crud_exam_attempt.count_by_user_and_course(db, user_id=current_user.id, course_id=course_id)
        in_progress = crud_exam_attempt.get_in_progress_by_user_and_course(
            db, user_id=current_user.id, course_id=course_id
        )
        if in_progress and self.is_overdue(in_progress, clock.utcnow()):
            in_progress = None

        has_purchase = crud_purchase.has_completed_purchase(db, user_id=current_user.id, course_id=course_id)
        has_certificate = crud_certificate.get_active_by_user_and_course(
            db, user_id=current_user.id, course_id=course_id
        ) is not None
        attempts_remaining = max(definition.max_attempts - attempts_used, 0)
        blocked = settings.EXAM_BLOCK_RETAKE_AFTER_PASS and crud_exam_attempt.has_passed(
            db, user_id=current_user.id, course_id=course_id
        )

        return ExamOverview(
            course_id=course_id,
            exam_title=definition.title,
            question_count=len(definition.questions),
            time_limit_minutes=definition.time_limit_minutes,
            passing_score=definition.passing_score,
            max_attempts=definition.max_attempts,
            attempts_used=attempts_used,
            attempts_remaining=attempts_remaining,
            has_certificate=has_certificate,
            has_purchase=has_purchase,
            in_progress_attempt_id=in_progress.id if in_progress else None,
            can_start=has_purchase and not blocked and (in_progress is not None or attempts_remaining > 0),
        )


exam_attempt_service = ExamAttemptService()
