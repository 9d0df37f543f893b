import logging
import os
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.core.config import settings
from app.core.database import SessionLocal
from app.services.exam_attempt import exam_attempt_service

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def expire_overdue_attempts():
    db = SessionLocal()
    try:
        await exam_attempt_service.expire_overdue_attempts(db)
    except Exception as e:
        logger.error(f"Error expiring overdue exam attempts: {e}", exc_info=True)
    finally:
        db.close()


def start_scheduler():
    if os.getenv("TESTING") == "true":
        logger.info("Scheduler disabled in test environment")
        return

    if not scheduler.running:
        scheduler.add_job(
            expire_overdue_attempts,
            'interval',
            minutes=settings.EXPIRY_SWEEP_INTERVAL_MINUTES,
            id='expire_overdue_exam_attempts',
            name='Expire Overdue Exam Attempts',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        logger.info(
            f"Scheduler started with overdue attempt sweep every {settings.EXPIRY_SWEEP_INTERVAL_MINUTES} minute(s)"
        )


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
