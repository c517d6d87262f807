"""
Task-name normalization and the lenient/strict vocabulary policy.

The persistence layer owns the authoritative task-name enum. In lenient
mode a well-formed name we do not know yet is passed through with a
warning so the backend can make the final call.
"""

import enum
import logging
import re
from typing import Optional, Tuple, Union

from fleet_tracker.config import get_settings
from fleet_tracker.core.enums import TASK_NAMES
from fleet_tracker.core.errors import ErrorCode, Result

logger = logging.getLogger(__name__)

WELL_FORMED_TASK_NAME = re.compile(r"^[A-Z][A-Z0-9_]*$")


class TaskNamePolicy(str, enum.Enum):
    LENIENT = "lenient"
    STRICT = "strict"


def default_policy() -> TaskNamePolicy:
    return TaskNamePolicy(get_settings().TASK_NAME_POLICY)


def normalize_task_name(task_name: Optional[str]) -> str:
    if task_name is None:
        return ""
    return re.sub(r"\s+", "_", str(task_name).strip().upper())


def validate_task_name(
    task_name: Optional[str],
    policy: Union[TaskNamePolicy, str, None] = None,
    known_names: Tuple[str, ...] = TASK_NAMES,
) -> Result[str]:
    """Return the normalized name, or an INVALID_TASK_NAME failure."""
    policy = TaskNamePolicy(policy) if policy is not None else default_policy()
    normalized = normalize_task_name(task_name)

    if not normalized:
        return Result.failure(ErrorCode.INVALID_TASK_NAME, "Task name is required")

    if normalized in known_names:
        return Result.success(normalized)

    if not WELL_FORMED_TASK_NAME.match(normalized):
        return Result.failure(
            ErrorCode.INVALID_TASK_NAME,
            f'Task name "{task_name}" is not a valid task name',
            task_name=task_name,
            normalized=normalized,
        )

    if policy is TaskNamePolicy.STRICT:
        return Result.failure(
            ErrorCode.INVALID_TASK_NAME,
            f'Task name "{normalized}" is not in the known task list',
            task_name=task_name,
            normalized=normalized,
        )

    logger.warning(
        'Task name "%s" (normalized: "%s") is not in the known valid list; passing it through',
        task_name, normalized,
    )
    return Result.success(normalized)
