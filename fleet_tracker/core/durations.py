"""
Elapsed-time calculation and formatting.

A record is anything with ``started_at`` / ``stopped_at``. Open intervals
(no ``stopped_at``) are measured against "now", which is the injected
``as_of``, the injected clock, or the system clock, in that order.
"""

import enum
import logging
from datetime import timedelta
from typing import Any, Optional, Union

from fleet_tracker.core.clock import Timestamp, parse_timestamp, resolve_now
from fleet_tracker.core.records import read_field

logger = logging.getLogger(__name__)


class DurationUnit(str, enum.Enum):
    SECONDS = "seconds"
    MINUTES = "minutes"


class Granularity(str, enum.Enum):
    # whole minutes / hours only
    COARSE = "coarse"
    # down to the second
    FINE = "fine"


_UNIT_STEPS = {
    DurationUnit.SECONDS: timedelta(seconds=1),
    DurationUnit.MINUTES: timedelta(minutes=1),
}


def compute_duration(
    record: Any,
    unit: Union[DurationUnit, str] = DurationUnit.SECONDS,
    as_of: Optional[Timestamp] = None,
    clock=None,
) -> int:
    """
    Elapsed time of a start/stop record, floored to whole ``unit``s.

    Returns 0 for records that were never started. A stop earlier than the
    start is a data inconsistency: it is logged and counts as 0.
    """
    started_at = parse_timestamp(read_field(record, "started_at"))
    if started_at is None:
        return 0

    stopped_at = parse_timestamp(read_field(record, "stopped_at"))
    end = stopped_at if stopped_at is not None else resolve_now(as_of, clock)

    delta = end - started_at
    if delta < timedelta(0):
        logger.warning(
            "Interval ends before it starts (record id=%s, started_at=%s, end=%s); counting as 0",
            read_field(record, "id"), started_at.isoformat(), end.isoformat(),
        )
        return 0
    return delta // _UNIT_STEPS[DurationUnit(unit)]


def compute_seconds(record, as_of=None, clock=None):
    return compute_duration(record, DurationUnit.SECONDS, as_of, clock)


def compute_minutes(record, as_of=None, clock=None):
    return compute_duration(record, DurationUnit.MINUTES, as_of, clock)


def _whole(amount: Any) -> int:
    try:
        value = int(amount // 1)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(value, 0)


def _granularity(value):
    try:
        return Granularity(value)
    except ValueError:
        return Granularity.COARSE


def format_duration(amount: Any, granularity: Union[Granularity, str] = Granularity.COARSE) -> str:
    """
    Render a number of seconds as a compact string.

    fine:   45 -> "45s", 125 -> "2m 5s", 3725 -> "1h 2m 5s", 0 -> "0s"
    coarse: 45 -> "0m",  125 -> "2m",    3725 -> "1h 2m",    0 -> "0m"

    Never raises; junk or negative input formats as zero and an unknown
    granularity formats as coarse.
    """
    seconds = _whole(amount)
    if _granularity(granularity) is Granularity.COARSE:
        return format_minutes(seconds // 60)

    if seconds < 60:
        return f"{seconds}s"

    minutes, remaining_seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {remaining_seconds}s" if remaining_seconds > 0 else f"{minutes}m"

    hours, mins = divmod(minutes, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if mins > 0:
        parts.append(f"{mins}m")
    if remaining_seconds > 0:
        parts.append(f"{remaining_seconds}s")
    return " ".join(parts) if parts else "0s"


def format_minutes(minutes: Any) -> str:
    """Coarse rendering of a value already in minutes (e.g. ``total_work_time``)."""
    minutes = _whole(minutes)
    if minutes == 0:
        return "0m"
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"


def format_task_duration(seconds: Any) -> str:
    # Task rows show seconds only while the task is under a minute
    seconds = _whole(seconds)
    if seconds < 60:
        return format_duration(seconds, Granularity.FINE)
    return format_duration(seconds, Granularity.COARSE)


def format_hours_minutes(minutes):
    # always both parts, e.g. "0h 45m"
    hours, mins = divmod(_whole(minutes), 60)
    return f"{hours}h {mins}m"
