"""
Ordered task checklist rules for one mechanic's assignment.

Tasks run strictly in ascending ``order``. A task unlocks once every task
with a strictly lower order is completed, so tasks sharing an order value
unlock together. Task commands are only accepted while the owning
assignment is IN_PROGRESS.

Pausing an assignment does not stop a running task; its time keeps
accruing until the task itself is stopped.
"""

import logging
from collections import Counter
from typing import Any, Iterable, List, Optional

from fleet_tracker.core.clock import Timestamp, parse_timestamp, resolve_now
from fleet_tracker.core.enums import AssignmentStatus, TaskState, coerce_assignment_status
from fleet_tracker.core.errors import ErrorCode, Result, TrackerError
from fleet_tracker.core.records import read_field, read_list, write_field
from fleet_tracker.core.task_names import validate_task_name

logger = logging.getLogger(__name__)


def _order(task: Any) -> float:
    # Tasks without an order sort last and wait for everything else
    order = read_field(task, "order")
    return float("inf") if order is None else order


def sort_tasks(tasks):
    return sorted(tasks, key=_order)


def is_task_started(task):
    return read_field(task, "started_at") is not None


def is_task_active(task):
    return is_task_started(task) and read_field(task, "stopped_at") is None


def is_task_completed(task):
    return is_task_started(task) and read_field(task, "stopped_at") is not None


def blocking_tasks(task: Any, tasks: Iterable[Any]) -> List[Any]:
    order = _order(task)
    return [
        other for other in sort_tasks(tasks)
        if other is not task and _order(other) < order and not is_task_completed(other)
    ]


def is_task_locked(task, tasks):
    return not is_task_started(task) and bool(blocking_tasks(task, tasks))


def task_state(task: Any, tasks: Iterable[Any]) -> TaskState:
    if is_task_completed(task):
        return TaskState.COMPLETED
    if is_task_active(task):
        return TaskState.ACTIVE
    if is_task_locked(task, tasks):
        return TaskState.LOCKED
    return TaskState.READY


def can_start_task(task: Any, tasks: Iterable[Any], assignment_status: Any) -> bool:
    """
    True if the assignment is IN_PROGRESS and every strictly-lower-order task
    in ``tasks`` is completed. Says nothing about whether ``task`` itself has
    already been started; ``start_task`` checks that.
    """
    try:
        status = coerce_assignment_status(assignment_status)
    except ValueError:
        return False
    if status is not AssignmentStatus.IN_PROGRESS:
        return False
    return not blocking_tasks(task, tasks)


def next_task(tasks: Iterable[Any], assignment_status: Any) -> Optional[Any]:
    """First not-yet-started task that may be started right now."""
    tasks = list(tasks)
    for task in sort_tasks(tasks):
        if not is_task_started(task) and can_start_task(task, tasks, assignment_status):
            return task
    return None


def find_inconsistencies(tasks: Iterable[Any]) -> List[TrackerError]:
    """Report upstream data problems in a task list without correcting them."""
    tasks = list(tasks)
    problems: List[TrackerError] = []

    counts = Counter(read_field(t, "order") for t in tasks if read_field(t, "order") is not None)
    for order, count in sorted(counts.items()):
        if count > 1:
            problems.append(TrackerError(
                ErrorCode.DATA_INCONSISTENCY,
                f"{count} tasks share order {order}",
                {"order": order, "task_ids": [read_field(t, "id") for t in tasks if read_field(t, "order") == order]},
            ))

    for task in tasks:
        task_id = read_field(task, "id")
        order = read_field(task, "order")
        if order is None or order < 1:
            problems.append(TrackerError(
                ErrorCode.DATA_INCONSISTENCY,
                f"Task {task_id} has invalid order {order!r}",
                {"task_id": task_id, "order": order},
            ))

        started_at = parse_timestamp(read_field(task, "started_at"))
        stopped_at = parse_timestamp(read_field(task, "stopped_at"))
        if stopped_at is not None and started_at is None:
            problems.append(TrackerError(
                ErrorCode.DATA_INCONSISTENCY,
                f"Task {task_id} is stopped but was never started",
                {"task_id": task_id},
            ))
        elif stopped_at is not None and stopped_at < started_at:
            problems.append(TrackerError(
                ErrorCode.DATA_INCONSISTENCY,
                f"Task {task_id} stops before it starts",
                {"task_id": task_id, "started_at": started_at.isoformat(), "stopped_at": stopped_at.isoformat()},
            ))

    return problems


def _require_in_progress(assignment: Any, action: str) -> Optional[Result]:
    raw_status = read_field(assignment, "status")
    try:
        status = coerce_assignment_status(raw_status)
    except ValueError:
        return Result.failure(
            ErrorCode.DATA_INCONSISTENCY,
            f"Assignment has unknown status {raw_status!r}",
            assignment_id=read_field(assignment, "id"),
        )
    if status is not AssignmentStatus.IN_PROGRESS:
        return Result.failure(
            ErrorCode.ASSIGNMENT_NOT_ACTIVE,
            f"Cannot {action} a task while the activity is {status.value}",
            assignment_id=read_field(assignment, "id"),
            status=status.value,
        )
    return None


def start_task(
    task: Any,
    assignment: Any,
    tasks: Optional[Iterable[Any]] = None,
    as_of: Optional[Timestamp] = None,
    clock=None,
    policy=None,
) -> Result:
    """
    Start ``task`` for the mechanic who owns ``assignment``.

    ``tasks`` defaults to the assignment's own task list. On success the
    task's ``started_at`` is set and the task is returned; on failure
    nothing is touched.
    """
    tasks = read_list(assignment, "tasks") if tasks is None else list(tasks)
    task_id = read_field(task, "id")

    rejected = _require_in_progress(assignment, "start")
    if rejected is not None:
        logger.info("Start of task %s rejected: %s", task_id, rejected.error.message)
        return rejected

    if is_task_started(task):
        logger.info("Start of task %s rejected: already started", task_id)
        return Result.failure(
            ErrorCode.INVALID_STATE_TRANSITION,
            "Task has already been started",
            task_id=task_id,
        )

    for problem in find_inconsistencies(tasks):
        logger.warning("Task list of assignment %s: %s", read_field(assignment, "id"), problem.message)

    blockers = blocking_tasks(task, tasks)
    if blockers:
        logger.info("Start of task %s rejected: locked behind %d task(s)", task_id, len(blockers))
        return Result.failure(
            ErrorCode.TASK_LOCKED,
            "Previous tasks must be completed first",
            task_id=task_id,
            blocking_orders=sorted({read_field(t, "order") for t in blockers}),
        )

    checked_name = validate_task_name(read_field(task, "task_name"), policy)
    if not checked_name.is_success:
        return checked_name

    write_field(task, "started_at", resolve_now(as_of, clock))
    logger.info("Task %s (%s) started", task_id, checked_name.data)
    return Result.success(task)


def stop_task(
    task: Any,
    assignment: Any,
    as_of: Optional[Timestamp] = None,
    clock=None,
) -> Result:
    """Stop a running task. Stopping twice is rejected, never double-counted."""
    task_id = read_field(task, "id")

    rejected = _require_in_progress(assignment, "stop")
    if rejected is not None:
        logger.info("Stop of task %s rejected: %s", task_id, rejected.error.message)
        return rejected

    if not is_task_started(task):
        return Result.failure(
            ErrorCode.INVALID_STATE_TRANSITION,
            "Task has not been started",
            task_id=task_id,
        )
    if is_task_completed(task):
        return Result.failure(
            ErrorCode.INVALID_STATE_TRANSITION,
            "Task has already been stopped",
            task_id=task_id,
        )

    now = resolve_now(as_of, clock)
    started_at = parse_timestamp(read_field(task, "started_at"))
    if now < started_at:
        return Result.failure(
            ErrorCode.DATA_INCONSISTENCY,
            "Stop time is earlier than the task start",
            task_id=task_id,
            started_at=started_at.isoformat(),
            stopped_at=now.isoformat(),
        )

    write_field(task, "stopped_at", now)
    logger.info("Task %s stopped", task_id)
    return Result.success(task)
