"""SQLite repository behaviour against an in-memory database."""

from datetime import date
from uuid import uuid4

import pytest

from rescheduler.core.exceptions import NotFoundError, ProposalNotPendingError
from rescheduler.models.enums import ScheduleStatus
from rescheduler.models.reschedule import OverdueTask, RescheduleSlot
from tests.constants import NOW, TODAY, TOMORROW, YESTERDAY


def _overdue(task, entry) -> OverdueTask:
    return OverdueTask(
        task_id=task.id,
        schedule_id=entry.id,
        task_name=task.name,
        scheduled_date=entry.date,
        start_time=entry.start_time,
        end_time=entry.end_time,
        duration_minutes=entry.duration_minutes,
        priority=task.priority,
        status=entry.status,
    )


SLOT = RescheduleSlot(date=TOMORROW, start_time="10:00", end_time="11:00", day_index=1, score=98.5)


class TestScheduleRepository:
    @pytest.mark.asyncio
    async def test_list_occupied_carries_priority_and_excludes_own_entry(self, repos, make_plan, make_task, make_entry, test_user_id):
        plan = await make_plan()
        urgent = await make_task(plan.id, name="Urgent", priority=1)
        other = await make_task(plan.id, name="Other", priority=4)
        own = await make_entry(urgent, TODAY, "09:00", "10:00")
        await make_entry(other, TODAY, "11:00", "12:00")
        await make_entry(other, date(2025, 3, 30), "11:00", "12:00")

        occupied = await repos.schedule.list_occupied(
            test_user_id, plan.id, TODAY, TOMORROW, exclude_schedule_id=own.id
        )

        assert [(s.start_time, s.priority) for s in occupied] == [("11:00", 4)]

    @pytest.mark.asyncio
    async def test_list_occupied_is_scoped(self, repos, make_plan, make_task, make_entry, test_user_id):
        plan = await make_plan()
        await make_entry(await make_task(plan.id), TODAY, "09:00", "10:00")
        await make_entry(await make_task(None), TODAY, "13:00", "14:00")

        free = await repos.schedule.list_occupied(test_user_id, None, TODAY, TODAY)

        assert [s.start_time for s in free] == ["13:00"]

    @pytest.mark.asyncio
    async def test_find_instance_ignores_seconds(self, repos, make_task, make_entry, test_user_id):
        task = await make_task(None)
        entry = await make_entry(task, YESTERDAY, "08:00:00", "09:00:00")

        found = await repos.schedule.find_instance(test_user_id, task.id, None, YESTERDAY, "08:00", "09:00")

        assert found is not None and found.id == entry.id

    @pytest.mark.asyncio
    async def test_find_instance_follows_a_moved_row(self, repos, make_task, make_entry, test_user_id):
        task = await make_task(None)
        entry = await make_entry(task, YESTERDAY, "08:00", "09:00")
        proposal, _ = await repos.proposal.create_pending(test_user_id, None, _overdue(task, entry), SLOT, NOW)
        await repos.proposal.accept(test_user_id, proposal.id, NOW)

        found = await repos.schedule.find_instance(test_user_id, task.id, None, YESTERDAY, "08:00", "09:00")
        other = await repos.schedule.find_instance(test_user_id, task.id, None, YESTERDAY, "10:00", "11:00")

        assert found is not None and found.id == entry.id
        assert found.date == TOMORROW
        assert other is None

    @pytest.mark.asyncio
    async def test_set_status_on_unknown_entry(self, repos, test_user_id):
        assert await repos.schedule.set_status(test_user_id, uuid4(), ScheduleStatus.OVERDUE) is None


class TestProposalRepository:
    @pytest.mark.asyncio
    async def test_create_pending_is_idempotent(self, repos, make_task, make_entry, test_user_id):
        task = await make_task(None)
        entry = await make_entry(task, YESTERDAY, "14:00", "15:00", day_index=3)

        first, created = await repos.proposal.create_pending(test_user_id, None, _overdue(task, entry), SLOT, NOW)
        second, created_again = await repos.proposal.create_pending(
            test_user_id, None, _overdue(task, entry), SLOT, NOW
        )

        assert created and not created_again
        assert second.id == first.id
        assert first.original_day_index == 3
        stored = await repos.schedule.get(test_user_id, entry.id)
        assert stored.status == ScheduleStatus.PENDING_RESCHEDULE
        assert stored.pending_reschedule_id == first.id

    @pytest.mark.asyncio
    async def test_create_pending_for_missing_entry(self, repos, make_task, make_entry, test_user_id):
        task = await make_task(None)
        entry = await make_entry(task, YESTERDAY, "14:00", "15:00")
        ghost = _overdue(task, entry).model_copy(update={"schedule_id": uuid4()})

        with pytest.raises(NotFoundError):
            await repos.proposal.create_pending(test_user_id, None, ghost, SLOT, NOW)

    @pytest.mark.asyncio
    async def test_accept_twice_raises(self, repos, make_task, make_entry, test_user_id):
        task = await make_task(None)
        entry = await make_entry(task, YESTERDAY, "14:00", "15:00")
        proposal, _ = await repos.proposal.create_pending(test_user_id, None, _overdue(task, entry), SLOT, NOW)

        await repos.proposal.accept(test_user_id, proposal.id, NOW)
        with pytest.raises(ProposalNotPendingError):
            await repos.proposal.accept(test_user_id, proposal.id, NOW)
        with pytest.raises(ProposalNotPendingError):
            await repos.proposal.reject(test_user_id, proposal.id, NOW)

    @pytest.mark.asyncio
    async def test_pending_placements_only_in_window(self, repos, make_task, make_entry, test_user_id):
        task = await make_task(None, priority=2)
        entry = await make_entry(task, YESTERDAY, "14:00", "15:00")
        await repos.proposal.create_pending(test_user_id, None, _overdue(task, entry), SLOT, NOW)

        inside = await repos.proposal.list_pending_placements(test_user_id, None, TODAY, TOMORROW)
        outside = await repos.proposal.list_pending_placements(test_user_id, None, TODAY, TODAY)

        assert [(s.date, s.start_time, s.priority, s.duration_minutes) for s in inside] == [
            (TOMORROW, "10:00", 2, 60)
        ]
        assert outside == []


class TestSchedulingHistoryRepository:
    @pytest.mark.asyncio
    async def test_adjustments_accumulate_per_day(self, repos, make_plan, test_user_id):
        plan = await make_plan()

        await repos.history.append_adjustment(test_user_id, plan.id, TODAY, {"n": 1}, plan.end_date)
        entry = await repos.history.append_adjustment(test_user_id, plan.id, TODAY, {"n": 2}, plan.end_date)

        assert entry.tasks_rescheduled == 2
        assert entry.task_adjustments == [{"n": 1}, {"n": 2}]
        assert entry.days_extended == 0
        assert len(await repos.history.list(test_user_id, plan.id)) == 1

    @pytest.mark.asyncio
    async def test_history_is_newest_first(self, repos, make_plan, test_user_id):
        plan = await make_plan()
        await repos.history.append_adjustment(test_user_id, plan.id, YESTERDAY, {"n": 1})
        await repos.history.record_plan_extension(
            test_user_id, plan.id, TODAY, plan.end_date, date(2025, 3, 22), {"type": "plan_extension"}
        )

        history = await repos.history.list(test_user_id, plan.id)

        assert [h.adjustment_date for h in history] == [TODAY, YESTERDAY]
        assert history[0].days_extended == 2


class TestUserSettingsRepository:
    @pytest.mark.asyncio
    async def test_upsert_keeps_timezone_when_omitted(self, repos, test_user_id):
        await repos.user_settings.upsert(test_user_id, {}, "Asia/Tokyo")
        record = await repos.user_settings.upsert(test_user_id, {"workday": {"start_hour": 8}})

        assert record.timezone == "Asia/Tokyo"
        assert record.preferences == {"workday": {"start_hour": 8}}

    @pytest.mark.asyncio
    async def test_toggle_defaults_to_enabled(self, repos, test_user_id):
        assert await repos.user_settings.is_auto_reschedule_enabled(test_user_id)
        await repos.user_settings.upsert(test_user_id, {"auto_reschedule": {"enabled": False}})
        assert not await repos.user_settings.is_auto_reschedule_enabled(test_user_id)

    @pytest.mark.asyncio
    async def test_user_ids_include_schedule_owners(self, repos, make_task, make_entry, test_user_id):
        await repos.user_settings.upsert("alice", {})
        await make_entry(await make_task(None), TODAY, "09:00", "10:00")

        assert await repos.user_settings.list_user_ids() == ["alice", test_user_id]
