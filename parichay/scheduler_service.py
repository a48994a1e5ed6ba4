"""
Scheduled jobs for Parichay
- Lead follow-up reminders every hour
- Expired session cleanup every night
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from parichay.config import db, now_iso

logger = logging.getLogger("scheduler")


class TaskScheduler:
    """Holds the AsyncIOScheduler and the job callables"""

    def __init__(self):
        self.scheduler = AsyncIOScheduler(timezone="UTC")

    def start(self):
        self.scheduler.add_job(
            self.send_follow_up_reminders,
            CronTrigger(minute=0),
            id="follow_up_reminders",
            name="Lead follow-up reminders",
            replace_existing=True
        )

        self.scheduler.add_job(
            self.purge_expired_sessions,
            CronTrigger(hour=3, minute=0),
            id="purge_expired_sessions",
            name="Expired session cleanup",
            replace_existing=True
        )

        self.scheduler.start()
        logger.info("Scheduler started")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")

    # ==================== JOBS ====================

    async def send_follow_up_reminders(self):
        from parichay.services.reminders import send_follow_up_reminders

        try:
            result = await send_follow_up_reminders()
            logger.info(f"Follow-up reminders job: {result}")
        except Exception as e:
            logger.error(f"Follow-up reminders job failed: {str(e)}")

    async def purge_expired_sessions(self):
        try:
            result = await db.sessions.delete_many({"expires_at": {"$lt": now_iso()}})
            logger.info(f"{result.deleted_count} expired session(s) removed")
        except Exception as e:
            logger.error(f"Session cleanup failed: {str(e)}")


task_scheduler = TaskScheduler()
