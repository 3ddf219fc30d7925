"""
Background scheduler for periodic rescheduling passes.

Uses APScheduler for in-process scheduling without external dependencies.
"""

from __future__ import annotations

from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from rescheduler.core.config import get_settings
from rescheduler.core.logger import logger
from rescheduler.interfaces.user_settings_repository import IUserSettingsRepository
from rescheduler.services.auto_reschedule_service import AutoRescheduleService


class BackgroundScheduler:
    """Runs the auto-reschedule pass for every known user on an interval."""

    def __init__(
        self,
        user_settings_repo: IUserSettingsRepository,
        auto_reschedule_service: AutoRescheduleService,
    ):
        self._user_settings_repo = user_settings_repo
        self._auto_reschedule_service = auto_reschedule_service
        self._scheduler: Optional[AsyncIOScheduler] = None

    async def start(self):
        """Start the scheduler."""
        settings = get_settings()

        if settings.is_test:
            logger.info("Background scheduler disabled in test environment")
            return
        if not settings.AUTO_RESCHEDULE_ENABLED:
            logger.info("Background auto-reschedule disabled by configuration")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.run_auto_reschedule_pass,
            IntervalTrigger(minutes=settings.AUTO_RESCHEDULE_INTERVAL_MINUTES),
            id="auto_reschedule_overdue",
            name="Auto Reschedule Overdue Tasks",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(
            "Background scheduler started:\n"
            f"  - Auto reschedule pass: every {settings.AUTO_RESCHEDULE_INTERVAL_MINUTES} minutes"
        )

    async def stop(self):
        """Stop the scheduler."""
        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Background scheduler stopped")

    async def run_auto_reschedule_pass(self) -> int:
        """One pass over all users. Returns the number of proposals created."""
        logger.info("Starting auto reschedule pass...")
        created = 0
        try:
            user_ids = await self._user_settings_repo.list_user_ids()
        except Exception as e:
            logger.error(f"Auto reschedule pass failed to list users: {e}")
            return 0

        for user_id in user_ids:
            try:
                results = await self._auto_reschedule_service.reschedule_all_for_user(user_id)
                created += len(results)
            except Exception as e:
                logger.error(f"Auto reschedule failed for user {user_id}: {e}")

        logger.info(f"Auto reschedule pass completed: {created} proposal(s) for {len(user_ids)} user(s)")
        return created


_scheduler: Optional[BackgroundScheduler] = None


async def get_background_scheduler() -> BackgroundScheduler:
    """Get or create the global background scheduler instance."""
    global _scheduler
    if _scheduler is None:
        from rescheduler.api.deps import (
            build_auto_reschedule_service,
            get_user_settings_repository,
        )

        _scheduler = BackgroundScheduler(
            user_settings_repo=get_user_settings_repository(),
            auto_reschedule_service=build_auto_reschedule_service(),
        )
    return _scheduler


async def start_background_scheduler():
    """Start the global background scheduler."""
    scheduler = await get_background_scheduler()
    await scheduler.start()


async def stop_background_scheduler():
    """Stop the global background scheduler."""
    global _scheduler
    if _scheduler:
        await _scheduler.stop()
        _scheduler = None
