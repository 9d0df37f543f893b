from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional

from app.core.constants import NotificationEventEnum


class Notification(BaseModel):
    """An exam result or certificate notice shown in the candidate's inbox."""
    id: int
    notification_type: NotificationEventEnum
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
