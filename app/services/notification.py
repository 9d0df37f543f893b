import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.constants import NotificationEventEnum
from app.core.database import SessionLocal
from app.crud.notification import notification as crud_notification
from app.crud.user import user as crud_user
from app.models.notification import Notification
from app.services.email import EmailService
from app.utils.events import event_bus

logger = logging.getLogger(__name__)

EMAIL_SUBJECTS = {
    NotificationEventEnum.EXAM_PASSED: "You passed the {course_title} exam",
    NotificationEventEnum.EXAM_FAILED: "Your {course_title} exam result",
    NotificationEventEnum.CERTIFICATE_ISSUED: "Your {course_title} certificate is ready",
}


def _in_app_message(event: NotificationEventEnum, data: Dict[str, Any]):
    if event == NotificationEventEnum.EXAM_PASSED:
        return (
            f"You passed the {data['course_title']} exam with {data['score']}%.",
            f"/exams/attempts/{data['attempt_id']}",
        )
    if event == NotificationEventEnum.EXAM_FAILED:
        return (
            f"You scored {data['score']}% on the {data['course_title']} exam "
            f"({data['attempts_remaining']} attempt(s) remaining).",
            f"/exams/attempts/{data['attempt_id']}",
        )
    return (
        f"Your certificate {data['certificate_number']} for {data['course_title']} is ready.",
        f"/certificates/{data['certificate_id']}",
    )


class NotificationService:
    def create_notification(
        self, db: Session, *, user_id: int, notification_type: NotificationEventEnum, message: str, link: Optional[str] = None
    ) -> Notification:
        return crud_notification.create(db, obj_in={
            "user_id": user_id,
            "message": message,
            "link": link,
            "notification_type": notification_type,
        })

    def get_user_notifications(self, db: Session, *, user_id: int, skip: int = 0, limit: int = 100) -> List[Notification]:
        return crud_notification.get_for_user(db, user_id=user_id, skip=skip, limit=limit)

    async def notify(self, user_id: int, event: NotificationEventEnum, payload: Dict[str, Any]):
        """Fire-and-forget: handler failures are logged by the event bus."""
        await event_bus.publish(event.value, {**payload, "user_id": user_id, "event": event.value})


notification_service = NotificationService()


def handle_in_app_notification(data: Dict[str, Any]):
    event = NotificationEventEnum(data["event"])
    message, link = _in_app_message(event, data)
    db = SessionLocal()
    try:
        notification_service.create_notification(
            db, user_id=data["user_id"], notification_type=event, message=message, link=link
        )
    finally:
        db.close()


def handle_notification_email(data: Dict[str, Any]):
    event = NotificationEventEnum(data["event"])
    db = SessionLocal()
    try:
        user = crud_user.get(db, id=data["user_id"])
        if not user:
            logger.warning(f"Skipping {event.value} email: user {data['user_id']} not found")
            return
        to_email = user.email
        recipient_name = user.display_name
    finally:
        db.close()

    EmailService.send_email(
        to_email=to_email,
        subject=EMAIL_SUBJECTS[event].format(**data),
        template_name=f"{event.value}.html",
        template_context={**data, "recipient_name": recipient_name},
    )


def register_notification_handlers():
    for event in NotificationEventEnum:
        event_bus.subscribe(event.value, handle_in_app_notification)
        event_bus.subscribe(event.value, handle_notification_email)
