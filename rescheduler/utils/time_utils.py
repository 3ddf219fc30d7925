"""
Wall-clock time helpers for schedule entries.

Schedule times are stored as "HH:MM" or "HH:MM:SS" strings in the user's
local time. Everything here is pure so it can be reused by the detector and
the slot scorer.
"""

from datetime import date
from typing import Optional

MINUTES_PER_DAY = 24 * 60


def parse_time_to_minutes(time_str: str) -> int:
    """Minutes since midnight for "HH:MM" or "HH:MM:SS" (seconds ignored)."""
    parts = time_str.split(":")
    return int(parts[0]) * 60 + int(parts[1])


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM"."""
    hours, mins = divmod(int(minutes), 60)
    return f"{hours:02d}:{mins:02d}"


def normalize_time(time_str: Optional[str]) -> Optional[str]:
    """Normalize to "HH:MM:SS" so string comparison orders correctly."""
    if not time_str:
        return None
    parts = time_str.split(":")
    if len(parts) == 2:
        return f"{int(parts[0]):02d}:{int(parts[1]):02d}:00"
    return f"{int(parts[0]):02d}:{int(parts[1]):02d}:{int(parts[2]):02d}"


def trim_seconds(time_str: Optional[str]) -> Optional[str]:
    """Reduce "HH:MM:SS" to "HH:MM"."""
    if not time_str:
        return time_str
    parts = time_str.split(":")
    if len(parts) >= 2:
        return f"{int(parts[0]):02d}:{int(parts[1]):02d}"
    return time_str


def time_ranges_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    """Half-open [start, end) overlap check in minutes."""
    return start1 < end2 and end1 > start2


def is_cross_day_task(start_time: str, end_time: str) -> bool:
    """A task whose end time is earlier than its start time runs past midnight."""
    return parse_time_to_minutes(end_time) < parse_time_to_minutes(start_time)


def calculate_duration(start_time: str, end_time: str) -> int:
    """Duration in minutes, wrapping past midnight when end < start."""
    start_minutes = parse_time_to_minutes(start_time)
    end_minutes = parse_time_to_minutes(end_time)
    if end_minutes < start_minutes:
        return MINUTES_PER_DAY - start_minutes + end_minutes
    return end_minutes - start_minutes


def interval_minutes(start_time: str, end_time: str) -> tuple[int, int]:
    """
    Occupied [start, end) interval on the entry's own day.

    Cross-midnight entries occupy the rest of the day.
    """
    start = parse_time_to_minutes(start_time)
    end = parse_time_to_minutes(end_time)
    if end < start:
        end = MINUTES_PER_DAY
    return start, end


def is_instance_elapsed(
    instance_date: date,
    end_time: Optional[str],
    today: date,
    now_time: str,
) -> bool:
    """
    Whether an instance ending at end_time on instance_date has already ended.

    Past dates are always elapsed; today's instances are elapsed once the
    normalized end time is strictly before the current local time.
    """
    if instance_date < today:
        return True
    if instance_date > today:
        return False
    normalized_end = normalize_time(end_time)
    normalized_now = normalize_time(now_time)
    if not normalized_end or not normalized_now:
        return False
    return normalized_end < normalized_now


def js_weekday(value: date) -> int:
    """Weekday number with 0 = Sunday ... 6 = Saturday (recurrence_days convention)."""
    return (value.weekday() + 1) % 7
