from typing import Optional
from sqlalchemy.orm import Session, selectinload

from app.crud.base import CRUDBase
from app.models.exam import Exam


class CRUDExam(CRUDBase[Exam, dict, dict]):

    def _query_with_relationships(self, db: Session):
        return db.query(Exam).options(
            selectinload(Exam.questions),
            selectinload(Exam.course),
        )

    def get_published_by_course(self, db: Session, course_id: int) -> Optional[Exam]:
        return (
            self._query_with_relationships(db)
            .filter(Exam.course_id == course_id)
            .filter(Exam.is_published.is_(True))
            .first()
        )

    def get_by_course(self, db: Session, course_id: int) -> Optional[Exam]:
        return db.query(Exam).filter(Exam.course_id == course_id).first()

exam = CRUDExam(Exam)
