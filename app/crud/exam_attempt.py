from sqlalchemy.orm import Session, selectinload
from typing import Any, Dict, List, Optional

from app.core.constants import ExamAttemptStatusEnum
from app.crud.base import CRUDBase
from app.models.exam_attempt import ExamAttempt

class CRUDExamAttempt(CRUDBase[ExamAttempt, dict, dict]):

    def _query_with_relationships(self, db: Session):
        return db.query(ExamAttempt).options(
            selectinload(ExamAttempt.user_answers),
            selectinload(ExamAttempt.certificate),
        )

    def get(self, db: Session, id: int):
        return self._query_with_relationships(db).filter(ExamAttempt.id == id).first()

    def count_by_user_and_course(self, db: Session, user_id: int, course_id: int) -> int:
        return (
            db.query(ExamAttempt)
            .filter(ExamAttempt.user_id == user_id)
            .filter(ExamAttempt.course_id == course_id)
            .count()
        )

    def get_by_user_and_course(self, db: Session, user_id: int, course_id: int) -> List[ExamAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(ExamAttempt.user_id == user_id)
            .filter(ExamAttempt.course_id == course_id)
            .order_by(ExamAttempt.attempt_number)
            .all()
        )

    def get_all_by_user(self, db: Session, user_id: int, skip: int = 0, limit: int = 100) -> List[ExamAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(ExamAttempt.user_id == user_id)
            .order_by(ExamAttempt.started_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_in_progress_by_user_and_course(self, db: Session, user_id: int, course_id: int) -> Optional[ExamAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(ExamAttempt.user_id == user_id)
            .filter(ExamAttempt.course_id == course_id)
            .filter(ExamAttempt.status == ExamAttemptStatusEnum.IN_PROGRESS)
            .order_by(ExamAttempt.attempt_number.desc())
            .first()
        )

    def get_all_in_progress(self, db: Session) -> List[ExamAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(ExamAttempt.status == ExamAttemptStatusEnum.IN_PROGRESS)
            .order_by(ExamAttempt.started_at)
            .all()
        )

    def has_passed(self, db: Session, user_id: int, course_id: int) -> bool:
        return db.query(
            db.query(ExamAttempt)
            .filter(ExamAttempt.user_id == user_id)
            .filter(ExamAttempt.course_id == course_id)
            .filter(ExamAttempt.passed.is_(True))
            .exists()
        ).scalar()

    def finalize(self, db: Session, attempt_id: int, values: Dict[str, Any]) -> bool:
        """Move an in-progress attempt to a terminal state.

        Compare-and-set on ``status``: returns False when another writer
        already finalized the attempt. The caller owns the transaction.
        """
        updated = (
            db.query(ExamAttempt)
            .filter(ExamAttempt.id == attempt_id)
            .filter(ExamAttempt.status == ExamAttemptStatusEnum.IN_PROGRESS)
            .update(values, synchronize_session=False)
        )
        return updated == 1


exam_attempt = CRUDExamAttempt(ExamAttempt)
