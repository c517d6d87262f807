"""
Closed vocabularies used by the tracker.

These mirror the enum lists of the planning backend. Statuses are ``str``
enums so they compare equal to the raw strings stored in records.
"""

import enum


class UnitStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    BREAKDOWN = "BREAKDOWN"
    INACTIVE = "INACTIVE"


class ActivityStatus(str, enum.Enum):
    PENDING = "PENDING"
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    DELAYED = "DELAYED"
    CANCELLED = "CANCELLED"


class AssignmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    DELAYED = "DELAYED"


class AssignmentAction(str, enum.Enum):
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    # external trigger, e.g. missed estimated start
    DELAY = "delay"


class TaskState(str, enum.Enum):
    LOCKED = "LOCKED"
    READY = "READY"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class PauseReason(str, enum.Enum):
    WAITING_PARTS = "WAITING_PARTS"
    REST_AND_PRAY = "REST_AND_PRAY"
    OTHER = "OTHER"


class ActivityName(str, enum.Enum):
    PERIODIC_SERVICE = "PERIODIC_SERVICE"
    SCHEDULED_MAINTENANCE = "SCHEDULED_MAINTENANCE"
    UNSCHEDULED_MAINTENANCE = "UNSCHEDULED_MAINTENANCE"
    TROUBLESHOOTING = "TROUBLESHOOTING"
    REPAIR_AND_ADJUSTMENT = "REPAIR_AND_ADJUSTMENT"
    GENERAL_REPAIR = "GENERAL_REPAIR"
    PERIODIC_INSPECTION = "PERIODIC_INSPECTION"
    PERIODIC_INSPECTION_TYRE = "PERIODIC_INSPECTION_TYRE"
    PERIODIC_SERVICE_TYRE = "PERIODIC_SERVICE_TYRE"
    RETORQUE_TYRE = "RETORQUE_TYRE"
    REPAIR_TYRE = "REPAIR_TYRE"
    TROUBLESHOOTING_TYRE = "TROUBLESHOOTING_TYRE"
    OTHER = "OTHER"


TASK_NAMES = (
    "PREPARING_PART",
    "PREPARING_PARTS",
    "PREPARING_TOOLS",
    "PREPARING_TYRE_AND_MATERIAL",
    "TRAVELING",
    "WASHING_UNIT",
    "WASHING_UNITS",
    "PRE_INSPECTION",
    "ON_PROCESS",
    "PELAKSANAAN_PS",
    "PELAKSANAAN_BACKLOG",
    "PAP",
    "PPM",
    "REMOVE_INSTALL_TYRE",
    "RETORQUE",
    "FINAL_CHECK",
    "FINAL_CHECK_AND_GROUND_TEST",
    "REPORTING",
    "HOUSEKEEPING",
)

# Units in these states may receive new activities
ACTIVITY_READY_UNIT_STATUSES = frozenset({UnitStatus.BREAKDOWN, UnitStatus.INACTIVE})


def coerce_enum(enum_cls, value):
    """Accept a member of enum_cls or its raw value in any letter case."""
    if isinstance(value, enum_cls):
        return value
    raw = str(value.value if isinstance(value, enum.Enum) else value).strip()
    for candidate in (raw, raw.upper(), raw.lower()):
        try:
            return enum_cls(candidate)
        except ValueError:
            continue
    raise ValueError(f"{value!r} is not a valid {enum_cls.__name__}")


def coerce_assignment_status(value) -> AssignmentStatus:
    return coerce_enum(AssignmentStatus, value)


def can_receive_activity(unit) -> bool:
    """True if the unit is broken down or inactive and may get a new activity."""
    status = getattr(unit, "status", None)
    if status is None:
        return False
    try:
        return coerce_enum(UnitStatus, status) in ACTIVITY_READY_UNIT_STATUSES
    except ValueError:
        return False
