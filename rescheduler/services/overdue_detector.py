"""
Overdue detector.

Finds schedule entries whose window elapsed without a completion. Recurring
instances that never got a schedule row are materialized in a separate step
so detection itself stays a read-only query.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, Optional
from uuid import UUID

from rescheduler.core.config import get_settings
from rescheduler.core.logger import setup_logger
from rescheduler.interfaces.clock import IClock
from rescheduler.interfaces.completion_repository import ICompletionRepository
from rescheduler.interfaces.schedule_repository import IScheduleRepository
from rescheduler.interfaces.task_repository import ITaskRepository
from rescheduler.models.enums import DETECTABLE_STATUSES, ScheduleStatus
from rescheduler.models.reschedule import DetectionResult, OverdueTask
from rescheduler.models.schedule_entry import ScheduleEntry, ScheduleEntryCreate
from rescheduler.models.task import Task
from rescheduler.services.workday_settings_service import WorkdaySettingsService
from rescheduler.utils.datetime_utils import to_user_local
from rescheduler.utils.time_utils import (
    calculate_duration,
    is_cross_day_task,
    is_instance_elapsed,
    js_weekday,
    trim_seconds,
)

logger = setup_logger(__name__)

DAY_START = "00:00"
DAY_END = "23:59"


def recurring_instances_for_day(
    task: Task,
    day: date,
    today: date,
    now_time: str,
) -> Iterator[tuple[date, str, str]]:
    """
    Yield (date, start, end) for elapsed instances of a recurring task on a day.

    Cross-midnight tasks are split: the end-day portion (00:00 to end) belongs
    to the day after a recurrence day, and the start-day portion (start to
    23:59) is yielded once the next day's end time has passed.
    """
    start = trim_seconds(task.default_start_time)
    end = trim_seconds(task.default_end_time)
    if not start or not end or not task.recurrence_days:
        return

    days = set(task.recurrence_days)
    dow = js_weekday(day)

    if not is_cross_day_task(start, end):
        if dow in days and is_instance_elapsed(day, end, today, now_time):
            yield day, start, end
        return

    previous_dow = (dow + 6) % 7
    if previous_dow in days and is_instance_elapsed(day, end, today, now_time):
        yield day, DAY_START, end
    if dow in days and is_instance_elapsed(day + timedelta(days=1), end, today, now_time):
        yield day, start, DAY_END


class OverdueDetector:
    """Detects overdue schedule entries in a plan scope (None = free mode)."""

    def __init__(
        self,
        schedule_repo: IScheduleRepository,
        task_repo: ITaskRepository,
        completion_repo: ICompletionRepository,
        settings_service: WorkdaySettingsService,
        clock: IClock,
        lookback_days: Optional[int] = None,
    ):
        self._schedule_repo = schedule_repo
        self._task_repo = task_repo
        self._completion_repo = completion_repo
        self._settings_service = settings_service
        self._clock = clock
        self._lookback_days = (
            lookback_days if lookback_days is not None else get_settings().RECURRING_LOOKBACK_DAYS
        )

    async def _local_now(
        self, user_id: str, check_time: Optional[datetime]
    ) -> tuple[date, str]:
        settings = await self._settings_service.get_workday_settings(user_id)
        if check_time is not None:
            local = to_user_local(check_time, settings.timezone)
        else:
            local = self._clock.now(settings.timezone)
        return local.date(), local.strftime("%H:%M:%S")

    async def detect_overdue_tasks(
        self,
        plan_id: Optional[UUID],
        user_id: str,
        check_time: Optional[datetime] = None,
    ) -> DetectionResult:
        try:
            today, now_time = await self._local_now(user_id, check_time)
            entries = await self._schedule_repo.list_up_to(
                user_id, plan_id, today, DETECTABLE_STATUSES
            )
            elapsed = [
                entry
                for entry in entries
                if entry.end_time and is_instance_elapsed(entry.date, entry.end_time, today, now_time)
            ]
            if not elapsed:
                return DetectionResult(tasks=[])

            task_ids = list({entry.task_id for entry in elapsed})
            tasks = {task.id: task for task in await self._task_repo.get_many(user_id, task_ids)}

            overdue: list[OverdueTask] = []
            seen: set[UUID] = set()
            for entry in elapsed:
                if entry.id in seen:
                    continue
                task = tasks.get(entry.task_id)
                if not task:
                    logger.debug(f"Skipping schedule {entry.id}: task {entry.task_id} not found")
                    continue
                if await self._completion_repo.exists(
                    user_id, entry.task_id, entry.plan_id, [today, entry.date]
                ):
                    continue
                seen.add(entry.id)
                overdue.append(self._to_overdue_task(entry, task))

            logger.info(
                f"Detected {len(overdue)} overdue task(s) for user {user_id} "
                f"(plan={plan_id or 'free'}, today={today}, now={now_time})"
            )
            return DetectionResult(tasks=overdue)
        except Exception as e:
            logger.error(f"Overdue detection failed for user {user_id}, plan {plan_id}: {e}")
            return DetectionResult(tasks=[], error=str(e))

    @staticmethod
    def _to_overdue_task(entry: ScheduleEntry, task: Task) -> OverdueTask:
        duration = entry.duration_minutes
        if not duration and entry.start_time and entry.end_time:
            duration = calculate_duration(entry.start_time, entry.end_time)
        return OverdueTask(
            task_id=entry.task_id,
            schedule_id=entry.id,
            task_name=task.name,
            scheduled_date=entry.date,
            start_time=entry.start_time,
            end_time=entry.end_time,
            duration_minutes=duration or task.estimated_duration_minutes,
            priority=task.priority,
            complexity_score=task.complexity_score,
            status=entry.status,
        )

    async def materialize_recurring_instances(
        self,
        plan_id: Optional[UUID],
        user_id: str,
        check_time: Optional[datetime] = None,
    ) -> list[ScheduleEntry]:
        """
        Insert overdue schedule rows for elapsed recurring instances that have none.

        Covers the lookback window plus today. Completed instances and
        instances that already have a row are left alone, so repeated runs
        create nothing new.
        """
        today, now_time = await self._local_now(user_id, check_time)
        tasks = await self._task_repo.list_indefinite_recurring(user_id, plan_id)
        if not tasks:
            return []

        created: list[ScheduleEntry] = []
        for offset in range(self._lookback_days, -1, -1):
            day = today - timedelta(days=offset)
            for task in tasks:
                for instance_date, start, end in recurring_instances_for_day(
                    task, day, today, now_time
                ):
                    existing = await self._schedule_repo.find_instance(
                        user_id, task.id, plan_id, instance_date, start, end
                    )
                    if existing:
                        continue
                    if await self._completion_repo.exists(
                        user_id, task.id, plan_id, [instance_date]
                    ):
                        continue
                    entry = await self._schedule_repo.create(
                        user_id,
                        ScheduleEntryCreate(
                            task_id=task.id,
                            plan_id=plan_id,
                            date=instance_date,
                            start_time=start,
                            end_time=end,
                            duration_minutes=calculate_duration(start, end),
                            day_index=0,
                            status=ScheduleStatus.OVERDUE,
                        ),
                    )
                    created.append(entry)

        if created:
            logger.info(
                f"Materialized {len(created)} recurring instance(s) for user {user_id} "
                f"(plan={plan_id or 'free'})"
            )
        return created

    async def detect_with_materialization(
        self,
        plan_id: Optional[UUID],
        user_id: str,
        check_time: Optional[datetime] = None,
    ) -> DetectionResult:
        """Materialize missing recurring instances, then detect."""
        try:
            await self.materialize_recurring_instances(plan_id, user_id, check_time)
        except Exception as e:
            logger.error(f"Recurring materialization failed for user {user_id}, plan {plan_id}: {e}")
            return DetectionResult(tasks=[], error=str(e))
        return await self.detect_overdue_tasks(plan_id, user_id, check_time)
