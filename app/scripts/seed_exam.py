"""
Publish a course exam from a JSON question file.

The file is either a bare list of questions or an object with exam settings::

    {"title": "...", "passing_score": 80, "max_attempts": 2, "questions": [
        {"id": "ethics-101-q1", "question": "...", "options": ["A", "B"],
         "correct_answer": 1, "explanation": "..."}
    ]}

Run with:
    python -m app.scripts.seed_exam ethics-101 content/ethics-101/exam/questions.json
"""
import argparse
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from app.core.database import Base, SessionLocal, engine
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import configure_logging
from app.crud.course import course as crud_course
from app.models import registry  # noqa: F401
from app.schemas.exam import ExamDefinition, ExamFile
from app.services.question_bank import question_bank_service

logger = logging.getLogger(__name__)


def load_exam_file(path: Path, default_title: str) -> ExamFile:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, list):
        raw = {"title": default_title, "questions": raw}
    try:
        return ExamFile.model_validate(raw)
    except SchemaValidationError as e:
        raise ValidationError(f"Invalid question file {path}", details={"errors": e.errors()}) from e


def seed_exam(db: Session, course_slug: str, path: Path, course_title: Optional[str] = None) -> ExamDefinition:
    course = crud_course.get_by_slug(db, slug=course_slug)
    if not course:
        if not course_title:
            raise NotFoundError(f"Course '{course_slug}' not found; pass --course-title to create it.")
        course = crud_course.create(db, obj_in={"slug": course_slug, "title": course_title, "is_active": True})
        logger.info(f"Created course '{course_slug}' (id={course.id})")

    exam_file = load_exam_file(path, default_title=f"{course.title} Certification Exam")
    return question_bank_service.import_exam_file(db, course_id=course.id, exam_file=exam_file)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Publish a course exam from a JSON question file.")
    parser.add_argument("course_slug")
    parser.add_argument("question_file", type=Path)
    parser.add_argument("--course-title", default=None)
    parser.add_argument("--create-tables", action="store_true")
    args = parser.parse_args(argv)

    configure_logging()
    if args.create_tables:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        definition = seed_exam(db, args.course_slug, args.question_file, course_title=args.course_title)
        logger.info(
            f"Published '{definition.title}' for course {definition.course_id}: "
            f"{len(definition.questions)} questions, pass at {definition.passing_score}%, "
            f"{definition.max_attempts} attempt(s)"
        )
    finally:
        db.close()


if __name__ == "__main__":
    main()
