from typing import Optional
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.course import Course

class CRUDCourse(CRUDBase[Course, dict, dict]):
    def get_by_slug(self, db: Session, slug: str) -> Optional[Course]:
        return db.query(Course).filter(Course.slug == slug).first()

course = CRUDCourse(Course)
