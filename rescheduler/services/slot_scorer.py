"""
Slot scorer.

Generates candidate placements for an overdue task across a short window of
days and ranks them by conflict, density and time-of-day fit. Scoring is
done by pure functions parameterized by a ScoringPolicy; SlotScorer only
loads the inputs.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional
from uuid import UUID

from rescheduler.core.logger import setup_logger
from rescheduler.interfaces.clock import IClock
from rescheduler.interfaces.reschedule_proposal_repository import IRescheduleProposalRepository
from rescheduler.interfaces.schedule_repository import IScheduleRepository
from rescheduler.models.enums import PrioritySpacing
from rescheduler.models.reschedule import OverdueTask, RescheduleSlot
from rescheduler.models.schedule_entry import OccupiedSlot
from rescheduler.models.workday import DEFAULT_SCORING_POLICY, ScoringPolicy, WorkdaySettings
from rescheduler.services.workday_settings_service import WorkdaySettingsService
from rescheduler.utils.time_utils import (
    interval_minutes,
    is_cross_day_task,
    minutes_to_time,
    time_ranges_overlap,
)

logger = setup_logger(__name__)

MIDNIGHT = "00:00"


def _center(start: float, end: float) -> float:
    return (start + end) / 2


def calculate_priority_penalty(
    slot_start: int,
    slot_end: int,
    task_priority: int,
    neighbours: Iterable[OccupiedSlot],
    spacing: PrioritySpacing,
    policy: ScoringPolicy = DEFAULT_SCORING_POLICY,
) -> float:
    """
    Proximity-weighted penalty from neighbouring tasks in the spacing window.

    Neighbours of the same or higher priority (lower number) weigh more than
    lower-priority ones. Neighbours without a priority are ignored.
    """
    window = policy.spacing_window_minutes[spacing]
    weight = policy.spacing_weight[spacing]
    slot_center = _center(slot_start, slot_end)

    penalty = 0.0
    for neighbour in neighbours:
        if not neighbour.start_time or not neighbour.end_time or not neighbour.priority:
            continue
        distance = abs(slot_center - _center(*interval_minutes(neighbour.start_time, neighbour.end_time)))
        if distance > window:
            continue
        proximity = 1 - distance / window
        if neighbour.priority <= task_priority:
            penalty += weight * proximity * policy.same_priority_scale
        else:
            penalty += policy.lower_priority_weight * proximity * policy.lower_priority_scale
    return penalty


def calculate_density_penalty(
    slot_start: int,
    slot_end: int,
    neighbours: Iterable[OccupiedSlot],
    policy: ScoringPolicy = DEFAULT_SCORING_POLICY,
) -> float:
    """Penalty for clustering: a fixed amount per nearby task, capped."""
    slot_center = _center(slot_start, slot_end)
    count = 0
    for neighbour in neighbours:
        if not neighbour.start_time or not neighbour.end_time:
            continue
        center = _center(*interval_minutes(neighbour.start_time, neighbour.end_time))
        if abs(slot_center - center) <= policy.density_window_minutes:
            count += 1
    return min(count * policy.density_per_task, policy.density_cap)


def calculate_context_fit(
    slot_start: int,
    slot_end: int,
    task_priority: int,
    complexity_score: Optional[int],
    settings: WorkdaySettings,
    policy: ScoringPolicy = DEFAULT_SCORING_POLICY,
) -> float:
    """Time-of-day bonus or malus for the task's priority and complexity."""
    slot_hour = int(_center(slot_start, slot_end) // 60)
    bonus = 0.0
    if task_priority == 1 and slot_hour < policy.morning_cutoff_hour:
        bonus += policy.high_priority_morning_bonus
    if task_priority >= policy.low_priority_threshold and slot_hour >= policy.afternoon_start_hour:
        bonus += policy.low_priority_afternoon_bonus
    if settings.lunch_start_hour <= slot_hour < settings.lunch_end_hour:
        bonus += policy.lunch_malus
    if complexity_score and complexity_score >= policy.complexity_threshold and slot_hour < policy.morning_cutoff_hour:
        bonus += policy.complex_morning_bonus
    return bonus


def score_slot(
    day: date,
    day_index: int,
    slot_start: int,
    slot_end: int,
    task_priority: int,
    complexity_score: Optional[int],
    neighbours: list[OccupiedSlot],
    settings: WorkdaySettings,
    policy: ScoringPolicy = DEFAULT_SCORING_POLICY,
) -> RescheduleSlot:
    priority_penalty = calculate_priority_penalty(
        slot_start, slot_end, task_priority, neighbours, settings.priority_spacing, policy
    )
    density_penalty = calculate_density_penalty(slot_start, slot_end, neighbours, policy)
    context_score = calculate_context_fit(
        slot_start, slot_end, task_priority, complexity_score, settings, policy
    )
    score = (
        policy.base_score
        - priority_penalty * policy.priority_penalty_weight
        - density_penalty * policy.density_penalty_weight
        + context_score * policy.context_weight
    )
    return RescheduleSlot(
        date=day,
        start_time=minutes_to_time(slot_start),
        end_time=minutes_to_time(slot_end),
        day_index=day_index,
        score=score,
        context_score=context_score,
        priority_penalty=priority_penalty,
        density_penalty=density_penalty,
    )


def generate_candidate_slots(
    duration_minutes: int,
    occupied: list[OccupiedSlot],
    settings: WorkdaySettings,
    earliest_start: Optional[int] = None,
    policy: ScoringPolicy = DEFAULT_SCORING_POLICY,
) -> list[tuple[int, int]]:
    """
    Free [start, end) windows within the workday at the policy's granularity.

    Excludes starts before earliest_start, the lunch window and any overlap
    with an occupied interval. Returned in chronological order.
    """
    busy = [
        interval_minutes(slot.start_time, slot.end_time)
        for slot in occupied
        if slot.start_time and slot.end_time
    ]
    lunch_start, lunch_end = settings.lunch_start_minutes, settings.lunch_end_minutes

    candidates: list[tuple[int, int]] = []
    last_start = settings.workday_end_minutes - duration_minutes
    for slot_start in range(settings.workday_start_minutes, last_start + 1, policy.slot_granularity_minutes):
        if earliest_start is not None and slot_start < earliest_start:
            continue
        slot_end = slot_start + duration_minutes
        if time_ranges_overlap(slot_start, slot_end, lunch_start, lunch_end):
            continue
        if any(time_ranges_overlap(slot_start, slot_end, s, e) for s, e in busy):
            continue
        candidates.append((slot_start, slot_end))
    return candidates


def occupied_on_day(occupied: list[OccupiedSlot], day: date) -> list[OccupiedSlot]:
    """
    Occupied slots that fall on a day.

    Entries from the previous day that run past midnight contribute their
    00:00 to end portion.
    """
    previous_day = day - timedelta(days=1)
    day_slots = [slot for slot in occupied if slot.date == day]
    for slot in occupied:
        if (
            slot.date == previous_day
            and slot.start_time
            and slot.end_time
            and is_cross_day_task(slot.start_time, slot.end_time)
        ):
            day_slots.append(slot.model_copy(update={"date": day, "start_time": MIDNIGHT}))
    return day_slots


def rank_slots(
    task: OverdueTask,
    days: list[date],
    today: date,
    now_minutes: int,
    occupied: list[OccupiedSlot],
    settings: WorkdaySettings,
    policy: ScoringPolicy = DEFAULT_SCORING_POLICY,
) -> list[RescheduleSlot]:
    """Score every candidate on the given days, best first (stable on ties)."""
    duration = task.duration_minutes or policy.default_task_duration_minutes
    priority = task.priority or policy.default_task_priority

    scored: list[RescheduleSlot] = []
    for day in days:
        day_slots = occupied_on_day(occupied, day)
        earliest = now_minutes if day == today else None
        for slot_start, slot_end in generate_candidate_slots(
            duration, day_slots, settings, earliest, policy
        ):
            scored.append(
                score_slot(
                    day,
                    (day - today).days,
                    slot_start,
                    slot_end,
                    priority,
                    task.complexity_score,
                    day_slots,
                    settings,
                    policy,
                )
            )
    scored.sort(key=lambda slot: slot.score, reverse=True)
    return scored


class SlotScorer:
    """Finds the best free slot for an overdue task."""

    def __init__(
        self,
        schedule_repo: IScheduleRepository,
        proposal_repo: IRescheduleProposalRepository,
        settings_service: WorkdaySettingsService,
        clock: IClock,
        policy: ScoringPolicy = DEFAULT_SCORING_POLICY,
    ):
        self._schedule_repo = schedule_repo
        self._proposal_repo = proposal_repo
        self._settings_service = settings_service
        self._clock = clock
        self._policy = policy

    @property
    def policy(self) -> ScoringPolicy:
        return self._policy

    async def find_intelligent_reschedule_slot(
        self,
        task: OverdueTask,
        plan_id: Optional[UUID],
        user_id: str,
        plan_end_date: date,
        max_days: int = 3,
        settings: Optional[WorkdaySettings] = None,
    ) -> Optional[RescheduleSlot]:
        """
        Best-scoring slot from today through min(today + max_days, plan_end_date).

        Returns None when no candidate exists in the window.
        """
        settings = settings or await self._settings_service.get_workday_settings(user_id)
        today = self._clock.today(settings.timezone)
        last_day = min(today + timedelta(days=max_days), plan_end_date)
        if last_day < today:
            logger.debug(f"No search window for task {task.task_id}: plan ends {plan_end_date}")
            return None

        # Start a day early so last night's cross-midnight entries are seen
        load_from = today - timedelta(days=1)
        occupied = await self._schedule_repo.list_occupied(
            user_id, plan_id, load_from, last_day, exclude_schedule_id=task.schedule_id
        )
        occupied += await self._proposal_repo.list_pending_placements(
            user_id, plan_id, load_from, last_day
        )

        days = [today + timedelta(days=i) for i in range((last_day - today).days + 1)]
        ranked = rank_slots(
            task,
            days,
            today,
            self._clock.local_minutes(settings.timezone),
            occupied,
            settings,
            self._policy,
        )
        if not ranked:
            logger.info(
                f"No slot found for task {task.task_name} ({task.task_id}) "
                f"between {today} and {last_day}"
            )
            return None
        return ranked[0]
