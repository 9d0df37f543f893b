from typing import List
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.question import Question

class CRUDQuestion(CRUDBase[Question, dict, dict]):
    def get_by_exam(self, db: Session, *, exam_id: int) -> List[Question]:
        return (
            db.query(self.model)
            .filter(self.model.exam_id == exam_id)
            .order_by(self.model.position, self.model.id)
            .all()
        )

    def replace_for_exam(self, db: Session, *, exam_id: int, questions: List[dict]) -> List[Question]:
        db.query(self.model).filter(self.model.exam_id == exam_id).delete(synchronize_session=False)
        db_objs = [self.model(exam_id=exam_id, **q) for q in questions]
        db.add_all(db_objs)
        db.flush()
        return db_objs

question = CRUDQuestion(Question)
