"""
Point-in-time read model of an activity.

``snapshot`` samples "now" once and derives every figure from that instant,
so per-task, per-mechanic and activity totals always add up. Refreshing is
the caller's business: call it again with a later ``as_of``.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from fleet_tracker.core.aggregation import effective_work_time
from fleet_tracker.core.assignment_state import allowed_actions
from fleet_tracker.core.clock import Timestamp, resolve_now
from fleet_tracker.core.durations import (
    DurationUnit,
    compute_duration,
    format_minutes,
    format_task_duration,
)
from fleet_tracker.core.enums import AssignmentAction, AssignmentStatus, TaskState, coerce_assignment_status
from fleet_tracker.core.errors import ErrorCode, TrackerError
from fleet_tracker.core.records import activity_id_of, mechanic_id_of, read_field, read_list
from fleet_tracker.core.sequencer import can_start_task, is_task_active, is_task_started, sort_tasks, task_state

logger = logging.getLogger(__name__)


@dataclass
class TaskSnapshot:
    task_id: Any
    task_name: str
    order: int
    state: TaskState
    is_active: bool
    can_start: bool
    duration_seconds: int
    duration_minutes: int
    duration_formatted: str


@dataclass
class MechanicSnapshot:
    assignment_id: Any
    mechanic_id: Any
    status: Optional[AssignmentStatus]
    allowed_actions: List[AssignmentAction]
    tasks: List[TaskSnapshot] = field(default_factory=list)
    total_task_seconds: int = 0
    total_task_minutes: int = 0
    total_task_time_formatted: str = "0m"
    # stored total_work_time if set, else the live task sum
    work_time_minutes: int = 0
    work_time_formatted: str = "0m"
    problems: List[TrackerError] = field(default_factory=list)


@dataclass
class ActivitySnapshot:
    activity_id: Any
    as_of: datetime
    mechanics: List[MechanicSnapshot] = field(default_factory=list)
    total_seconds: int = 0
    total_minutes: int = 0
    total_formatted: str = "0m"


def snapshot_assignment(assignment: Any, as_of: Optional[Timestamp] = None, clock=None) -> MechanicSnapshot:
    now = resolve_now(as_of, clock)
    problems = []
    raw_status = read_field(assignment, "status")
    try:
        status = coerce_assignment_status(raw_status)
    except ValueError:
        status = None
        problems.append(TrackerError(
            ErrorCode.DATA_INCONSISTENCY,
            f"Assignment has unknown status {raw_status!r}",
            {"assignment_id": read_field(assignment, "id"), "status": raw_status},
        ))
        logger.warning("Assignment %s has unknown status %r", read_field(assignment, "id"), raw_status)
    tasks = sort_tasks(read_list(assignment, "tasks"))

    task_snapshots = []
    for task in tasks:
        seconds = compute_duration(task, DurationUnit.SECONDS, as_of=now)
        task_snapshots.append(TaskSnapshot(
            task_id=read_field(task, "id"),
            task_name=read_field(task, "task_name"),
            order=read_field(task, "order"),
            state=task_state(task, tasks),
            is_active=is_task_active(task),
            can_start=not is_task_started(task) and can_start_task(task, tasks, status),
            duration_seconds=seconds,
            duration_minutes=compute_duration(task, DurationUnit.MINUTES, as_of=now),
            duration_formatted=format_task_duration(seconds),
        ))

    total_minutes = sum(t.duration_minutes for t in task_snapshots)
    work_minutes = effective_work_time(assignment, as_of=now)
    return MechanicSnapshot(
        assignment_id=read_field(assignment, "id"),
        mechanic_id=mechanic_id_of(assignment),
        status=status,
        allowed_actions=allowed_actions(assignment),
        tasks=task_snapshots,
        total_task_seconds=sum(t.duration_seconds for t in task_snapshots),
        total_task_minutes=total_minutes,
        total_task_time_formatted=format_minutes(total_minutes),
        work_time_minutes=work_minutes,
        work_time_formatted=format_minutes(work_minutes),
        problems=problems,
    )


def snapshot(activity: Any, as_of: Optional[Timestamp] = None, clock=None) -> ActivitySnapshot:
    """Build the read model for ``activity`` and all of its mechanics."""
    now = resolve_now(as_of, clock)
    assignments = read_list(activity, "mechanics")
    mechanics = [snapshot_assignment(assignment, as_of=now) for assignment in assignments]

    activity_id = read_field(activity, "id")
    if activity_id is None and assignments:
        activity_id = activity_id_of(assignments[0])

    total_minutes = sum(m.total_task_minutes for m in mechanics)
    return ActivitySnapshot(
        activity_id=activity_id,
        as_of=now,
        mechanics=mechanics,
        total_seconds=sum(m.total_task_seconds for m in mechanics),
        total_minutes=total_minutes,
        total_formatted=format_minutes(total_minutes),
    )
