import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.cache import CacheManager, cache
from app.core.cache_config import CACHE_KEYS, CACHE_TTL, INVALIDATION_PATTERNS
from app.core.constants import QuestionTypeEnum, TRUE_FALSE_OPTIONS
from app.core.exceptions import ExamNotConfigured, NotFoundError, ValidationError
from app.crud.course import course as crud_course
from app.crud.exam import exam as crud_exam
from app.crud.question import question as crud_question
from app.schemas.exam import ExamDefinition, ExamFile, QuestionDefinition, QuestionFileEntry

logger = logging.getLogger(__name__)


class QuestionBankCache:
    """Read-through cache of resolved exam definitions, keyed by course id.

    Entries are populated by the loader on a read miss and dropped through
    ``invalidate`` whenever a course's question bank is republished.
    """

    def __init__(self, manager: CacheManager):
        self.manager = manager

    def _key(self, course_id: int) -> str:
        return CACHE_KEYS["exam_definition"].format(course_id)

    def get(self, course_id: int) -> Optional[ExamDefinition]:
        cached = self.manager.get(self._key(course_id))
        if cached is None:
            return None
        return ExamDefinition.model_validate(cached)

    def set(self, course_id: int, definition: ExamDefinition) -> bool:
        return self.manager.set(
            self._key(course_id),
            definition.model_dump(mode="json"),
            CACHE_TTL["exam_definition"],
        )

    def invalidate(self, course_id: int) -> int:
        removed = 0
        for pattern in INVALIDATION_PATTERNS["exam_content_update"]:
            removed += self.manager.delete_pattern(pattern.format(course_id))
        logger.info(f"Invalidated question bank cache for course {course_id} ({removed} keys)")
        return removed

    def invalidate_all(self) -> int:
        removed = 0
        for pattern in INVALIDATION_PATTERNS["all_exam_content"]:
            removed += self.manager.delete_pattern(pattern)
        return removed


def validate_questions(questions: List[QuestionDefinition]) -> None:
    """Reject a question pool that could not be graded deterministically."""
    if not questions:
        raise ValidationError("Exam has no questions.")

    errors = []
    seen_keys = set()
    for position, q in enumerate(questions):
        if q.key in seen_keys:
            errors.append({"question": q.key, "position": position, "error": "duplicate question id"})
        seen_keys.add(q.key)

        if len(q.options) < 2:
            errors.append({"question": q.key, "position": position, "error": "fewer than 2 options"})
        elif not 0 <= q.correct_answer < len(q.options):
            errors.append({"question": q.key, "position": position, "error": "correct answer index out of range"})

        if q.question_type == QuestionTypeEnum.TRUE_FALSE:
            if sorted(o.strip().lower() for o in q.options) != ["false", "true"]:
                errors.append({"question": q.key, "position": position, "error": "true/false options must be True and False"})

        if q.points < 1:
            errors.append({"question": q.key, "position": position, "error": "points must be positive"})

    if errors:
        raise ValidationError("Exam question bank is invalid.", details={"errors": errors})


class QuestionBankService:
    def __init__(self, bank_cache: QuestionBankCache):
        self.cache = bank_cache

    def load(self, db: Session, course_id: int) -> ExamDefinition:
        cached = self.cache.get(course_id)
        if cached is not None:
            return cached

        exam = crud_exam.get_published_by_course(db, course_id=course_id)
        if not exam:
            raise ExamNotConfigured(details={"course_id": course_id})

        definition = ExamDefinition(
            exam_id=exam.id,
            course_id=exam.course_id,
            title=exam.title,
            time_limit_minutes=exam.time_limit_minutes,
            passing_score=exam.passing_score,
            max_attempts=exam.max_attempts,
            shuffle_questions=exam.shuffle_questions,
            questions=[QuestionDefinition.model_validate(q) for q in exam.questions],
        )
        validate_questions(definition.questions)

        self.cache.set(course_id, definition)
        return definition

    def invalidate(self, course_id: int) -> int:
        return self.cache.invalidate(course_id)

    def _entry_to_definition(self, slug: str, position: int, entry: QuestionFileEntry) -> QuestionDefinition:
        options = list(entry.options)
        if entry.question_type == QuestionTypeEnum.TRUE_FALSE and not options:
            options = list(TRUE_FALSE_OPTIONS)

        correct = entry.correct_answer
        if isinstance(correct, str):
            lowered = [o.strip().lower() for o in options]
            try:
                correct = lowered.index(correct.strip().lower())
            except ValueError:
                raise ValidationError(
                    "Correct answer does not match any option.",
                    details={"question": entry.id or position + 1, "correct_answer": entry.correct_answer},
                )

        return QuestionDefinition(
            key=entry.id or f"{slug}-q{position + 1}",
            question_text=entry.question,
            question_type=entry.question_type,
            options=options,
            correct_answer=correct,
            points=entry.points,
            explanation=entry.explanation,
        )

    def import_exam_file(self, db: Session, course_id: int, exam_file: ExamFile) -> ExamDefinition:
        """Publish a course's exam from a parsed question file.

        Replaces the existing question pool. Attempts already in progress keep
        the questions they were started with.
        """
        course = crud_course.get(db, id=course_id)
        if not course:
            raise NotFoundError("Course not found.", details={"course_id": course_id})

        questions = [
            self._entry_to_definition(course.slug, position, entry)
            for position, entry in enumerate(exam_file.questions)
        ]
        validate_questions(questions)

        exam_data = {
            "title": exam_file.title,
            "shuffle_questions": exam_file.shuffle_questions,
            "is_published": True,
        }
        for field in ("time_limit_minutes", "passing_score", "max_attempts"):
            value = getattr(exam_file, field)
            if value is not None:
                exam_data[field] = value

        exam = crud_exam.get_by_course(db, course_id=course_id)
        if exam:
            exam = crud_exam.update(db, db_obj=exam, obj_in=exam_data, commit=False)
        else:
            exam = crud_exam.create(db, obj_in={"course_id": course_id, **exam_data}, commit=False)

        crud_question.replace_for_exam(
            db,
            exam_id=exam.id,
            questions=[
                {**q.model_dump(), "position": position, "question_type": QuestionTypeEnum(q.question_type)}
                for position, q in enumerate(questions)
            ],
        )
        db.commit()
        logger.info(f"Imported {len(questions)} questions for course {course_id} (exam {exam.id})")

        self.invalidate(course_id)
        db.expire_all()
        return self.load(db, course_id)


question_bank_cache = QuestionBankCache(cache)
question_bank_service = QuestionBankService(question_bank_cache)
