"""
Unit tests for overdue detection and recurring-instance materialization.

The clock is fixed at Wednesday 2025-03-12 10:00 UTC.
"""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from rescheduler.models.enums import ScheduleStatus
from rescheduler.models.schedule_entry import CompletionCreate, ScheduleEntryCreate
from rescheduler.services.overdue_detector import OverdueDetector, recurring_instances_for_day
from tests.constants import TODAY, TOMORROW, YESTERDAY


class TestDetectOverdueTasks:
    @pytest.mark.asyncio
    async def test_scenario_a_yesterday_entry_is_overdue(self, detector, make_plan, make_task, make_entry, test_user_id):
        plan = await make_plan()
        task = await make_task(plan.id, priority=1, estimated_duration_minutes=60)
        entry = await make_entry(task, YESTERDAY, "14:00", "15:00")

        result = await detector.detect_overdue_tasks(plan.id, test_user_id)

        assert result.ok
        assert [t.schedule_id for t in result.tasks] == [entry.id]
        overdue = result.tasks[0]
        assert overdue.priority == 1
        assert overdue.duration_minutes == 60
        assert overdue.scheduled_date == YESTERDAY
        assert overdue.status == ScheduleStatus.SCHEDULED

    @pytest.mark.asyncio
    async def test_scenario_b_completed_today_is_excluded(self, detector, make_plan, make_task, make_entry, complete, test_user_id):
        plan = await make_plan()
        task = await make_task(plan.id, priority=1, estimated_duration_minutes=60)
        await make_entry(task, YESTERDAY, "14:00", "15:00")
        await complete(task, TODAY)

        result = await detector.detect_overdue_tasks(plan.id, test_user_id)

        assert result.ok
        assert result.tasks == []

    @pytest.mark.asyncio
    async def test_completion_on_entry_date_is_excluded(self, detector, make_plan, make_task, make_entry, complete, test_user_id):
        plan = await make_plan()
        task = await make_task(plan.id)
        await make_entry(task, YESTERDAY, "14:00", "15:00")
        await complete(task, YESTERDAY)

        result = await detector.detect_overdue_tasks(plan.id, test_user_id)

        assert result.tasks == []

    @pytest.mark.asyncio
    async def test_completion_in_other_scope_does_not_match(self, detector, repos, make_plan, make_task, make_entry, test_user_id):
        plan = await make_plan()
        task = await make_task(plan.id)
        await make_entry(task, YESTERDAY, "14:00", "15:00")
        await repos.completion.create(
            test_user_id, CompletionCreate(task_id=task.id, plan_id=None, scheduled_date=TODAY)
        )

        result = await detector.detect_overdue_tasks(plan.id, test_user_id)

        assert len(result.tasks) == 1

    @pytest.mark.asyncio
    async def test_today_entries_use_local_time(self, detector, make_task, make_entry, test_user_id):
        task = await make_task(None)
        ended = await make_entry(task, TODAY, "08:30", "09:30")
        await make_entry(task, TODAY, "09:30", "10:00")
        await make_entry(task, TODAY, "10:30", "11:00")
        await make_entry(task, TOMORROW, "08:00", "09:00")

        result = await detector.detect_overdue_tasks(None, test_user_id)

        assert [t.schedule_id for t in result.tasks] == [ended.id]

    @pytest.mark.asyncio
    async def test_statuses_and_scope_filter(self, detector, make_plan, make_task, make_entry, test_user_id):
        plan = await make_plan()
        plan_task = await make_task(plan.id)
        free_task = await make_task(None, name="Free task")
        overdue = await make_entry(plan_task, YESTERDAY, "09:00", "10:00", ScheduleStatus.OVERDUE)
        rescheduling = await make_entry(plan_task, YESTERDAY, "11:00", "12:00", ScheduleStatus.RESCHEDULING)
        await make_entry(plan_task, YESTERDAY, "13:00", "14:00", ScheduleStatus.PENDING_RESCHEDULE)
        await make_entry(plan_task, YESTERDAY, "15:00", "16:00", ScheduleStatus.RESCHEDULED)
        free_entry = await make_entry(free_task, YESTERDAY, "09:00", "10:00")

        plan_result = await detector.detect_overdue_tasks(plan.id, test_user_id)
        free_result = await detector.detect_overdue_tasks(None, test_user_id)

        assert {t.schedule_id for t in plan_result.tasks} == {overdue.id, rescheduling.id}
        assert [t.schedule_id for t in free_result.tasks] == [free_entry.id]

    @pytest.mark.asyncio
    async def test_entries_without_task_are_skipped(self, detector, repos, test_user_id):
        await repos.schedule.create(
            test_user_id,
            ScheduleEntryCreate(task_id=uuid4(), date=YESTERDAY, start_time="09:00", end_time="10:00"),
        )

        result = await detector.detect_overdue_tasks(None, test_user_id)

        assert result.ok
        assert result.tasks == []

    @pytest.mark.asyncio
    async def test_user_timezone_shifts_today(self, detector, repos, make_task, make_entry, test_user_id):
        # 10:00 UTC is 03:00 in Los Angeles, so "today" there is still the 12th
        # but an entry ending at 05:00 local has not ended yet
        await repos.user_settings.upsert(test_user_id, {}, "America/Los_Angeles")
        task = await make_task(None)
        await make_entry(task, TODAY, "04:00", "05:00")
        ended = await make_entry(task, TODAY, "01:00", "02:00")

        result = await detector.detect_overdue_tasks(None, test_user_id)

        assert [t.schedule_id for t in result.tasks] == [ended.id]

    @pytest.mark.asyncio
    async def test_explicit_check_time(self, detector, make_task, make_entry, test_user_id):
        task = await make_task(None)
        entry = await make_entry(task, TODAY, "10:30", "11:00")

        result = await detector.detect_overdue_tasks(
            None, test_user_id, check_time=datetime(2025, 3, 12, 12, 0, tzinfo=timezone.utc)
        )

        assert [t.schedule_id for t in result.tasks] == [entry.id]

    @pytest.mark.asyncio
    async def test_store_error_is_reported(self, repos, settings_service, clock, test_user_id):
        schedule_repo = AsyncMock()
        schedule_repo.list_up_to.side_effect = RuntimeError("db down")
        detector = OverdueDetector(schedule_repo, repos.task, repos.completion, settings_service, clock)

        result = await detector.detect_overdue_tasks(None, test_user_id)

        assert not result.ok
        assert result.tasks == []
        assert "db down" in result.error


class TestRecurringInstances:
    def _task(self, start, end, days):
        from rescheduler.models.task import Task

        now = datetime(2025, 3, 1, tzinfo=timezone.utc)
        return Task(
            id=uuid4(),
            user_id="u",
            name="Night shift",
            is_recurring=True,
            is_indefinite=True,
            recurrence_days=days,
            default_start_time=start,
            default_end_time=end,
            created_at=now,
            updated_at=now,
        )

    def test_regular_task_only_on_recurrence_days(self):
        task = self._task("08:00:00", "09:00:00", [3])
        assert list(recurring_instances_for_day(task, TODAY, TODAY, "10:00:00")) == [
            (TODAY, "08:00", "09:00")
        ]
        assert list(recurring_instances_for_day(task, YESTERDAY, TODAY, "10:00:00")) == []

    def test_not_yet_elapsed_today(self):
        task = self._task("11:00", "12:00", [3])
        assert list(recurring_instances_for_day(task, TODAY, TODAY, "10:00:00")) == []

    def test_cross_day_task_splits_into_portions(self):
        task = self._task("22:00", "02:00", [2])  # Tuesday nights
        assert list(recurring_instances_for_day(task, YESTERDAY, TODAY, "10:00:00")) == [
            (YESTERDAY, "22:00", "23:59")
        ]
        assert list(recurring_instances_for_day(task, TODAY, TODAY, "10:00:00")) == [
            (TODAY, "00:00", "02:00")
        ]

    def test_cross_day_start_portion_waits_for_next_day_end(self):
        task = self._task("22:00", "02:00", [3])
        assert list(recurring_instances_for_day(task, TODAY, TODAY, "10:00:00")) == []


class TestMaterialization:
    @pytest.mark.asyncio
    async def test_creates_rows_for_elapsed_instances_once(self, detector, make_task, test_user_id):
        await make_task(
            None,
            name="Stand-up",
            is_recurring=True,
            is_indefinite=True,
            recurrence_days=[1, 3],
            default_start_time="08:00",
            default_end_time="09:00",
        )

        created = await detector.materialize_recurring_instances(None, test_user_id)
        again = await detector.materialize_recurring_instances(None, test_user_id)

        assert sorted(e.date for e in created) == [date(2025, 3, 5), date(2025, 3, 10), TODAY]
        assert all(e.status == ScheduleStatus.OVERDUE and e.day_index == 0 for e in created)
        assert again == []

        result = await detector.detect_overdue_tasks(None, test_user_id)
        assert {t.schedule_id for t in result.tasks} == {e.id for e in created}

    @pytest.mark.asyncio
    async def test_completed_and_existing_instances_are_skipped(self, detector, make_task, make_entry, complete, test_user_id):
        task = await make_task(
            None,
            is_recurring=True,
            is_indefinite=True,
            recurrence_days=[1, 3],
            default_start_time="08:00",
            default_end_time="09:00",
        )
        await complete(task, date(2025, 3, 10))
        await make_entry(task, TODAY, "08:00", "09:00")

        created = await detector.materialize_recurring_instances(None, test_user_id)

        assert [e.date for e in created] == [date(2025, 3, 5)]

    @pytest.mark.asyncio
    async def test_rows_stored_with_seconds_count_as_existing(self, detector, make_task, make_entry, test_user_id):
        task = await make_task(
            None,
            is_recurring=True,
            is_indefinite=True,
            recurrence_days=[1, 3],
            default_start_time="08:00:00",
            default_end_time="09:00:00",
        )
        await make_entry(task, date(2025, 3, 10), "08:00:00", "09:00:00")

        created = await detector.materialize_recurring_instances(None, test_user_id)

        assert sorted(e.date for e in created) == [date(2025, 3, 5), TODAY]

    @pytest.mark.asyncio
    async def test_cross_day_materializes_both_portions(self, detector, make_task, test_user_id):
        await make_task(
            None,
            is_recurring=True,
            is_indefinite=True,
            recurrence_days=[2],
            default_start_time="22:00",
            default_end_time="02:00",
        )

        created = await detector.materialize_recurring_instances(None, test_user_id)

        assert sorted((e.date, e.start_time, e.end_time) for e in created) == [
            (date(2025, 3, 5), "00:00", "02:00"),
            (YESTERDAY, "22:00", "23:59"),
            (TODAY, "00:00", "02:00"),
        ]

    @pytest.mark.asyncio
    async def test_other_scope_tasks_are_ignored(self, detector, make_plan, make_task, test_user_id):
        plan = await make_plan()
        await make_task(
            plan.id,
            is_recurring=True,
            is_indefinite=True,
            recurrence_days=[3],
            default_start_time="08:00",
            default_end_time="09:00",
        )

        assert await detector.materialize_recurring_instances(None, test_user_id) == []
        assert len(await detector.materialize_recurring_instances(plan.id, test_user_id)) == 2
