from typing import List
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.notification import Notification

class CRUDNotification(CRUDBase[Notification, dict, dict]):
    def get_for_user(self, db: Session, *, user_id: int, skip: int = 0, limit: int = 100) -> List[Notification]:
        return (
            db.query(self.model)
            .filter(self.model.user_id == user_id)
            .order_by(self.model.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

notification = CRUDNotification(Notification)
