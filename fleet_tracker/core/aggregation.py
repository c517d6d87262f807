"""
Read-only roll-ups of task time.

Task durations roll up to a mechanic's assignment, assignments roll up to
activities and units, and everything a mechanic was assigned rolls up to
report-level summaries and rankings. Nothing here mutates a record.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from fleet_tracker.core.clock import Timestamp, resolve_now
from fleet_tracker.core.durations import DurationUnit, compute_duration, format_duration
from fleet_tracker.core.enums import AssignmentStatus, coerce_enum
from fleet_tracker.core.records import (
    activity_id_of,
    assignments_of,
    mechanic_id_of,
    read_field,
    read_list,
    unit_id_of,
)

ACTIVE_STATUSES = frozenset({AssignmentStatus.IN_PROGRESS, AssignmentStatus.PAUSED})


@dataclass
class MechanicTotals:
    per_mechanic: Dict[Any, int] = field(default_factory=dict)
    per_activity: Dict[Any, int] = field(default_factory=dict)
    per_unit: Dict[Any, int] = field(default_factory=dict)
    grand_total: int = 0
    unit: DurationUnit = DurationUnit.SECONDS


@dataclass
class RankedEntry:
    rank: int
    value: Any
    entry: Any


@dataclass
class ActivityStats:
    total: int
    active: int
    completed: int
    completion_rate: str
    active_rate: str


def mechanic_task_time(
    assignment: Any,
    unit: Union[DurationUnit, str] = DurationUnit.MINUTES,
    as_of: Optional[Timestamp] = None,
    clock=None,
) -> int:
    """Sum of this mechanic's task durations on one activity."""
    now = resolve_now(as_of, clock)
    return sum(compute_duration(task, unit, as_of=now) for task in read_list(assignment, "tasks"))


def effective_work_time(assignment: Any, as_of: Optional[Timestamp] = None, clock=None) -> int:
    """Stored ``total_work_time`` (minutes) when set, otherwise the live task sum."""
    stored = read_field(assignment, "total_work_time") or 0
    if stored > 0:
        return stored
    return mechanic_task_time(assignment, DurationUnit.MINUTES, as_of, clock)


def activity_total_time(
    activity_or_assignments: Any,
    unit: Union[DurationUnit, str] = DurationUnit.MINUTES,
    as_of: Optional[Timestamp] = None,
    clock=None,
) -> int:
    """Grand total for a single activity, across all of its mechanics."""
    now = resolve_now(as_of, clock)
    return sum(
        mechanic_task_time(assignment, unit, as_of=now)
        for assignment in assignments_of(activity_or_assignments)
    )


def my_total_work_time(
    assignments: Iterable[Any],
    mechanic_id: Any = None,
    unit: Union[DurationUnit, str] = DurationUnit.MINUTES,
    as_of: Optional[Timestamp] = None,
    clock=None,
) -> int:
    """
    Total task time across every activity assigned to one mechanic.

    ``assignments`` is usually the mechanic's own list already; pass
    ``mechanic_id`` to filter a mixed list.
    """
    now = resolve_now(as_of, clock)
    return sum(
        mechanic_task_time(assignment, unit, as_of=now)
        for assignment in assignments
        if mechanic_id is None or mechanic_id_of(assignment) == mechanic_id
    )


def aggregate_mechanic_totals(
    assignments: Iterable[Any],
    unit: Union[DurationUnit, str] = DurationUnit.SECONDS,
    as_of: Optional[Timestamp] = None,
    clock=None,
) -> MechanicTotals:
    now = resolve_now(as_of, clock)
    totals = MechanicTotals(unit=DurationUnit(unit))

    for assignment in assignments:
        amount = mechanic_task_time(assignment, unit, as_of=now)

        mechanic_id = mechanic_id_of(assignment)
        totals.per_mechanic[mechanic_id] = totals.per_mechanic.get(mechanic_id, 0) + amount

        activity_id = activity_id_of(assignment)
        totals.per_activity[activity_id] = totals.per_activity.get(activity_id, 0) + amount

        unit_id = unit_id_of(assignment)
        if unit_id is not None:
            totals.per_unit[unit_id] = totals.per_unit.get(unit_id, 0) + amount

        totals.grand_total += amount

    return totals


def _metric_value(entry, metric):
    value = read_field(entry, metric)
    return 0 if value is None else value


def rank_mechanics(entries: Iterable[Any], metric: str, limit: Optional[int] = None) -> List[RankedEntry]:
    """
    Rank entries by ``metric``, highest first.

    The sort is stable, so ties keep their input order; ranks are simply
    positions 1..N (no shared ranks).
    """
    ordered = sorted(entries, key=lambda entry: _metric_value(entry, metric), reverse=True)
    if limit is not None:
        ordered = ordered[:limit]
    return [
        RankedEntry(rank=position, value=_metric_value(entry, metric), entry=entry)
        for position, entry in enumerate(ordered, start=1)
    ]


def summarize_mechanics(
    assignments: Iterable[Any],
    as_of: Optional[Timestamp] = None,
    clock=None,
) -> List[Dict[str, Any]]:
    """
    One report row per mechanic, in order of first appearance.

    Rows carry ``total_activities``, ``completed_activities``,
    ``total_work_time_seconds`` and ``total_work_time_formatted``.
    """
    now = resolve_now(as_of, clock)
    rows: Dict[Any, Dict[str, Any]] = {}

    for assignment in assignments:
        mechanic_id = mechanic_id_of(assignment)
        row = rows.get(mechanic_id)
        if row is None:
            row = rows[mechanic_id] = {
                "mechanic_id": mechanic_id,
                "name": _mechanic_name(read_field(assignment, "mechanic")),
                "total_activities": 0,
                "completed_activities": 0,
                "total_work_time_seconds": 0,
            }
        row["total_activities"] += 1
        if _status_of(assignment) is AssignmentStatus.COMPLETED:
            row["completed_activities"] += 1
        row["total_work_time_seconds"] += mechanic_task_time(assignment, DurationUnit.SECONDS, as_of=now)

    for row in rows.values():
        row["total_work_time_formatted"] = format_duration(row["total_work_time_seconds"], "fine")
    return list(rows.values())


def _mechanic_name(mechanic: Any) -> Optional[str]:
    if mechanic is None:
        return None
    parts = [read_field(mechanic, "first_name"), read_field(mechanic, "last_name")]
    name = " ".join(part for part in parts if part)
    return name or None


def _status_of(record):
    try:
        return coerce_enum(AssignmentStatus, read_field(record, "status"))
    except ValueError:
        return None


def rate(count, total):
    if not total:
        return 0.0
    return count / total


def percentage(count: int, total: int, digits: int = 1) -> str:
    """Percentage string like "66.7"; "0" when total is zero."""
    if not total:
        return "0"
    return f"{rate(count, total) * 100:.{digits}f}"


def status_breakdown(records: Iterable[Any], field_name: str = "status") -> Dict[str, int]:
    counts: Counter = Counter()
    for record in records:
        status = read_field(record, field_name)
        if status is None:
            continue
        counts[status.value if hasattr(status, "value") else str(status)] += 1
    return dict(counts)


def activity_stats(assignments: Iterable[Any]) -> ActivityStats:
    assignments = list(assignments)
    statuses = [_status_of(a) for a in assignments]
    total = len(assignments)
    active = sum(1 for s in statuses if s in ACTIVE_STATUSES)
    completed = sum(1 for s in statuses if s is AssignmentStatus.COMPLETED)
    return ActivityStats(
        total=total,
        active=active,
        completed=completed,
        completion_rate=percentage(completed, total),
        active_rate=percentage(active, total),
    )


def average_duration(values):
    values = list(values)
    if not values:
        return 0
    return sum(values) // len(values)
