from datetime import datetime, timedelta, timezone

import pytest

from fleet_tracker.core.clock import FixedClock
from fleet_tracker.core.enums import ActivityName, AssignmentStatus, UnitStatus
from fleet_tracker.models import Activity, ActivityMechanic, ActivityTask, Mechanic, Unit

T0 = datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)


def at(minutes: float = 0, seconds: float = 0) -> datetime:
    """T0 shifted by the given offset."""
    return T0 + timedelta(minutes=minutes, seconds=seconds)


def make_task(order, task_name="PREPARING_PART", started=None, stopped=None, task_id=None):
    return ActivityTask(
        id=task_id if task_id is not None else order,
        task_name=task_name,
        order=order,
        started_at=started,
        stopped_at=stopped,
    )


def make_assignment(status=AssignmentStatus.PENDING, tasks=None, mechanic_id=1, assignment_id=1,
                    activity_id=1, **fields):
    return ActivityMechanic(
        id=assignment_id,
        activity_id=activity_id,
        mechanic_id=mechanic_id,
        status=status,
        tasks=list(tasks or []),
        **fields,
    )


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def three_tasks():
    return [
        make_task(1, "PREPARING_PART"),
        make_task(2, "WASHING_UNIT"),
        make_task(3, "REPORTING"),
    ]


@pytest.fixture
def unit():
    return Unit(id=10, code="DT-101", type="DT", brand="VOLVO", status=UnitStatus.BREAKDOWN)


@pytest.fixture
def activity(unit):
    budi = Mechanic(id=1, first_name="Budi", last_name="Santoso", nrp=1001)
    andi = Mechanic(id=2, first_name="Andi", last_name="Wijaya", nrp=1002)
    return Activity(
        id=100,
        unit=unit,
        unit_id=unit.id,
        name=ActivityName.PERIODIC_SERVICE,
        mechanics=[
            ActivityMechanic(id=1, activity_id=100, mechanic_id=1, mechanic=budi,
                             status=AssignmentStatus.IN_PROGRESS, started_at=T0,
                             tasks=[
                                 make_task(1, "PREPARING_PART", started=at(0), stopped=at(10), task_id=11),
                                 make_task(2, "WASHING_UNIT", started=at(10), task_id=12),
                                 make_task(3, "REPORTING", task_id=13),
                             ]),
            ActivityMechanic(id=2, activity_id=100, mechanic_id=2, mechanic=andi,
                             status=AssignmentStatus.PAUSED, started_at=T0, paused_at=at(5),
                             tasks=[
                                 make_task(1, "PREPARING_TOOLS", started=at(0), stopped=at(5, 30), task_id=21),
                                 make_task(2, "PELAKSANAAN_PS", task_id=22),
                             ]),
        ],
    )
