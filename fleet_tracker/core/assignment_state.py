"""
Per-mechanic status machine for an activity assignment.

    PENDING --start--> IN_PROGRESS --pause--> PAUSED --resume--> IN_PROGRESS
    IN_PROGRESS / PAUSED --stop--> COMPLETED (terminal)
    PENDING / PAUSED --delay--> DELAYED

DELAYED behaves like PENDING when the assignment was never started and like
PAUSED once it has been. Each mechanic on an activity has their own
assignment and their own machine.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from fleet_tracker.core.clock import Timestamp, resolve_now
from fleet_tracker.core.durations import DurationUnit, compute_duration
from fleet_tracker.core.enums import (
    AssignmentAction,
    AssignmentStatus,
    PauseReason,
    coerce_assignment_status,
    coerce_enum,
)
from fleet_tracker.core.errors import ErrorCode, Result
from fleet_tracker.core.records import mechanic_id_of, read_field, read_list, write_field

logger = logging.getLogger(__name__)

S = AssignmentStatus
A = AssignmentAction

TRANSITIONS: Dict[Tuple[AssignmentStatus, AssignmentAction], AssignmentStatus] = {
    (S.PENDING, A.START): S.IN_PROGRESS,
    (S.PENDING, A.DELAY): S.DELAYED,
    (S.IN_PROGRESS, A.PAUSE): S.PAUSED,
    (S.IN_PROGRESS, A.STOP): S.COMPLETED,
    (S.PAUSED, A.RESUME): S.IN_PROGRESS,
    (S.PAUSED, A.STOP): S.COMPLETED,
    (S.PAUSED, A.DELAY): S.DELAYED,
}

# Actions a mechanic can trigger from the UI (DELAY is external)
USER_ACTIONS = (A.START, A.PAUSE, A.RESUME, A.STOP)


def _effective_status(status: AssignmentStatus, assignment: Any = None) -> AssignmentStatus:
    if status is S.DELAYED:
        started = assignment is not None and read_field(assignment, "started_at") is not None
        return S.PAUSED if started else S.PENDING
    return status


def allowed_actions(status_or_assignment: Any) -> List[AssignmentAction]:
    """User actions available from the given status (or assignment record); [] if unknown."""
    if isinstance(status_or_assignment, (str, AssignmentStatus)):
        assignment = None
        raw_status = status_or_assignment
    else:
        assignment = status_or_assignment
        raw_status = read_field(assignment, "status")

    try:
        status = coerce_assignment_status(raw_status)
    except ValueError:
        return []

    effective = _effective_status(status, assignment)
    return [action for action in USER_ACTIONS if (effective, action) in TRANSITIONS]


def task_minutes(assignment: Any, as_of: Optional[Timestamp] = None, clock=None) -> int:
    """Sum of task durations in minutes. Pause windows are not subtracted."""
    now = resolve_now(as_of, clock)
    return sum(
        compute_duration(task, DurationUnit.MINUTES, as_of=now)
        for task in read_list(assignment, "tasks")
    )


def transition_assignment(
    assignment: Any,
    action: Union[AssignmentAction, str],
    as_of: Optional[Timestamp] = None,
    clock=None,
    pause_reason: Union[PauseReason, str, None] = None,
) -> Result:
    """
    Apply ``action`` to ``assignment``.

    On success the record is mutated in place and returned; an illegal
    action returns INVALID_STATE_TRANSITION and leaves it untouched.
    """
    assignment_id = read_field(assignment, "id")

    try:
        action = coerce_enum(AssignmentAction, action)
    except ValueError:
        return Result.failure(
            ErrorCode.INVALID_STATE_TRANSITION,
            f"Unknown action {action!r}",
            assignment_id=assignment_id,
        )

    raw_status = read_field(assignment, "status")
    try:
        current = coerce_assignment_status(raw_status)
    except ValueError:
        return Result.failure(
            ErrorCode.DATA_INCONSISTENCY,
            f"Assignment has unknown status {raw_status!r}",
            assignment_id=assignment_id,
        )

    lookup_status = current if action is A.DELAY else _effective_status(current, assignment)
    target = TRANSITIONS.get((lookup_status, action))
    if target is None:
        logger.info(
            "Assignment %s: %s not allowed from %s", assignment_id, action.value, current.value,
        )
        return Result.failure(
            ErrorCode.INVALID_STATE_TRANSITION,
            f"Cannot {action.value} an activity that is {current.value}",
            assignment_id=assignment_id,
            status=current.value,
            action=action.value,
        )

    if action is A.START and mechanic_id_of(assignment) is None:
        return Result.failure(
            ErrorCode.DATA_INCONSISTENCY,
            "Activity has no mechanic assigned",
            assignment_id=assignment_id,
        )

    if pause_reason is not None:
        if action is not A.PAUSE:
            return Result.failure(
                ErrorCode.INVALID_STATE_TRANSITION,
                "A pause reason can only be given when pausing",
                assignment_id=assignment_id,
                action=action.value,
            )
        try:
            pause_reason = coerce_enum(PauseReason, pause_reason)
        except ValueError:
            return Result.failure(
                ErrorCode.INVALID_STATE_TRANSITION,
                f"Unknown pause reason {pause_reason!r}",
                assignment_id=assignment_id,
            )

    now = resolve_now(as_of, clock)

    if action is A.START:
        if read_field(assignment, "started_at") is None:
            write_field(assignment, "started_at", now)
    elif action is A.PAUSE:
        write_field(assignment, "paused_at", now)
        write_field(assignment, "pause_reason", pause_reason)
    elif action is A.RESUME:
        write_field(assignment, "paused_at", None)
        write_field(assignment, "pause_reason", None)
    elif action is A.STOP:
        write_field(assignment, "stopped_at", now)
        # Running tasks are measured up to the stop instant
        write_field(assignment, "total_work_time", task_minutes(assignment, as_of=now))

    write_field(assignment, "status", target)
    logger.info(
        "Assignment %s (mechanic %s): %s -> %s",
        assignment_id, mechanic_id_of(assignment), current.value, target.value,
    )
    return Result.success(assignment)


def start_assignment(assignment: Any, **kwargs) -> Result:
    return transition_assignment(assignment, A.START, **kwargs)


def pause_assignment(assignment: Any, **kwargs) -> Result:
    return transition_assignment(assignment, A.PAUSE, **kwargs)


def resume_assignment(assignment: Any, **kwargs) -> Result:
    return transition_assignment(assignment, A.RESUME, **kwargs)


def stop_assignment(assignment: Any, **kwargs) -> Result:
    return transition_assignment(assignment, A.STOP, **kwargs)
