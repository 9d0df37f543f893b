import logging
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.config import settings
from app.schemas.response import APIResponse
from app.utils import deps

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/health", response_model=APIResponse[dict])
async def health_check(db: Session = Depends(deps.get_db)) -> APIResponse:
    database_ok = True
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        database_ok = False

    cache_ok = not settings.CACHE_ENABLED or cache.healthy()

    healthy = database_ok and cache_ok
    return APIResponse(
        message="healthy" if healthy else "degraded",
        data={"database": database_ok, "cache": cache_ok, "version": settings.VERSION},
    )
