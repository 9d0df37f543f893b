from sqlalchemy.orm import Session
from typing import Dict, List, Mapping

from app.core.constants import AnswerKindEnum
from app.crud.base import CRUDBase
from app.models.user_answer import UserAnswer
from app.schemas.exam_attempt import Answer, BooleanAnswer, OptionAnswer

class CRUDUserAnswer(CRUDBase[UserAnswer, dict, dict]):

    def get_all_by_attempt(self, db: Session, exam_attempt_id: int) -> List[UserAnswer]:
        return (
            db.query(UserAnswer)
            .filter(UserAnswer.exam_attempt_id == exam_attempt_id)
            .all()
        )

    def get_answer_map(self, db: Session, exam_attempt_id: int) -> Dict[str, Answer]:
        return {
            row.question_key: self.to_answer(row)
            for row in self.get_all_by_attempt(db, exam_attempt_id=exam_attempt_id)
        }

    def upsert_many(
        self, db: Session, exam_attempt_id: int, answers: Mapping[str, Answer], commit: bool = True
    ) -> List[UserAnswer]:
        existing = {row.question_key: row for row in self.get_all_by_attempt(db, exam_attempt_id=exam_attempt_id)}
        processed = []
        for question_key, answer in answers.items():
            row = existing.get(question_key)
            if row is None:
                row = UserAnswer(exam_attempt_id=exam_attempt_id, question_key=question_key)
                db.add(row)
            row.kind = AnswerKindEnum(answer.kind)
            if isinstance(answer, OptionAnswer):
                row.selected_option = answer.selected_option
                row.boolean_value = None
            else:
                row.selected_option = None
                row.boolean_value = answer.value
            processed.append(row)
        if commit:
            db.commit()
        else:
            db.flush()
        return processed

    @staticmethod
    def to_answer(row: UserAnswer) -> Answer:
        if row.kind == AnswerKindEnum.BOOLEAN:
            return BooleanAnswer(value=bool(row.boolean_value))
        return OptionAnswer(selected_option=row.selected_option)


user_answer = CRUDUserAnswer(UserAnswer)
