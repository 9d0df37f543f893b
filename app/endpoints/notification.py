from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.schemas.notification import Notification
from app.schemas.response import APIResponse
from app.schemas.user import CurrentUser
from app.services.notification import notification_service
from app.utils import deps

router = APIRouter()

@router.get("/me", response_model=APIResponse[List[Notification]])
async def get_my_notifications(
    db: Session = Depends(deps.get_db),
    current_user: CurrentUser = Depends(deps.get_current_user),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100)
):
    notifications = notification_service.get_user_notifications(db, user_id=current_user.id, skip=skip, limit=limit)
    return APIResponse(message="Notifications fetched successfully", data=notifications)
