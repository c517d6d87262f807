"""
Typed errors and results returned by tracker commands.

Commands never raise for rule violations; they hand back a ``Result`` the
caller can render. ``Result.unwrap()`` converts a failure into a
``TrackerException`` for callers that prefer exceptions.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar


class ErrorCode(str, enum.Enum):
    INVALID_STATE_TRANSITION = "INVALID_STATE_TRANSITION"
    TASK_LOCKED = "TASK_LOCKED"
    ASSIGNMENT_NOT_ACTIVE = "ASSIGNMENT_NOT_ACTIVE"
    DATA_INCONSISTENCY = "DATA_INCONSISTENCY"
    INVALID_TASK_NAME = "INVALID_TASK_NAME"


@dataclass
class TrackerError:
    """A rejected command or a reported data problem."""

    code: ErrorCode
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class TrackerException(Exception):
    """Raised by ``Result.unwrap()`` when the result is a failure."""

    def __init__(self, error: TrackerError):
        self.error = error
        super().__init__(error.message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    def __str__(self) -> str:
        return f"{self.error.code.value}: {self.error.message}"


TData = TypeVar("TData")


@dataclass
class Result(Generic[TData]):
    """
    Outcome of a tracker command.

    Attributes:
        is_success: Operation success indicator
        data: The (possibly mutated) record on success
        error: Error information on failure
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[TrackerError] = None

    @classmethod
    def success(cls, data: Optional[TData] = None) -> "Result[TData]":
        return cls(is_success=True, data=data)

    @classmethod
    def failure(cls, code: ErrorCode, message: str, **details: Any) -> "Result[TData]":
        return cls(is_success=False, error=TrackerError(code=code, message=message, details=details))

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @property
    def code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error else None

    def unwrap(self) -> TData:
        if not self.is_success:
            raise TrackerException(self.error)
        return self.data
