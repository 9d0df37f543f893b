from sqlalchemy.orm import Session

from app.core.constants import PurchaseStatusEnum
from app.crud.base import CRUDBase
from app.models.purchase import Purchase

class CRUDPurchase(CRUDBase[Purchase, dict, dict]):
    def has_completed_purchase(self, db: Session, user_id: int, course_id: int) -> bool:
        return db.query(
            db.query(Purchase)
            .filter(Purchase.user_id == user_id)
            .filter(Purchase.course_id == course_id)
            .filter(Purchase.status == PurchaseStatusEnum.COMPLETED)
            .exists()
        ).scalar()

purchase = CRUDPurchase(Purchase)
