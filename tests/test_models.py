import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from conftest import T0, at
from fleet_tracker import database
from fleet_tracker.core.enums import (
    ActivityName,
    ActivityStatus,
    AssignmentStatus,
    UnitStatus,
    can_receive_activity,
)
from fleet_tracker.core.assignment_state import start_assignment, stop_assignment
from fleet_tracker.core.sequencer import start_task, stop_task
from fleet_tracker.database import Base, make_engine
from fleet_tracker.models import Activity, ActivityMechanic, ActivityTask, Mechanic, Unit


@pytest.fixture
def session():
    engine = make_engine("sqlite://", echo=False)
    Base.metadata.create_all(bind=engine)
    with Session(engine) as db:
        yield db
    engine.dispose()


@pytest.fixture
def stored_activity(session):
    unit = Unit(code="DT-101", type="DT", brand="VOLVO", status=UnitStatus.BREAKDOWN)
    mechanic = Mechanic(first_name="Budi", last_name="Santoso", nrp=1001)
    activity = Activity(unit=unit, name=ActivityName.PERIODIC_SERVICE, estimated_start=T0)
    assignment = ActivityMechanic(activity=activity, mechanic=mechanic)
    # inserted out of order on purpose
    assignment.tasks = [
        ActivityTask(task_name="REPORTING", order=3),
        ActivityTask(task_name="PREPARING_PART", order=1),
        ActivityTask(task_name="WASHING_UNIT", order=2),
    ]
    session.add(activity)
    session.commit()
    return activity


class TestDefaults:
    def test_unsaved_records_have_status_defaults(self):
        assert Activity(name=ActivityName.OTHER).status is ActivityStatus.PENDING
        assignment = ActivityMechanic()
        assert assignment.status is AssignmentStatus.PENDING
        assert assignment.total_work_time == 0

    def test_saved_activity_gets_timestamps(self, stored_activity):
        assert stored_activity.id is not None
        assert stored_activity.created_at is not None
        assert stored_activity.status is ActivityStatus.PENDING


class TestRelationships:
    def test_tasks_come_back_in_order(self, session, stored_activity):
        assignment_id = stored_activity.mechanics[0].id
        session.expire_all()
        assignment = session.get(ActivityMechanic, assignment_id)
        assert [t.order for t in assignment.tasks] == [1, 2, 3]
        assert assignment.activity.unit.code == "DT-101"

    def test_mechanic_assigned_once_per_activity(self, session, stored_activity):
        mechanic = stored_activity.mechanics[0].mechanic
        session.add(ActivityMechanic(activity_id=stored_activity.id, mechanic_id=mechanic.id))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_unit_code_is_unique(self, session, stored_activity):
        session.add(Unit(code="DT-101", type="DT", brand="VOLVO"))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()


class TestPersistedWorkflow:
    def test_core_commands_on_orm_records(self, session, stored_activity):
        assignment = stored_activity.mechanics[0]
        first, second, _ = assignment.tasks

        start_assignment(assignment, as_of=at(0)).unwrap()
        start_task(first, assignment, as_of=at(0)).unwrap()
        stop_task(first, assignment, as_of=at(12)).unwrap()
        start_task(second, assignment, as_of=at(12)).unwrap()
        stop_assignment(assignment, as_of=at(30)).unwrap()
        session.commit()

        session.expire_all()
        reloaded = session.get(ActivityMechanic, assignment.id)
        assert reloaded.status is AssignmentStatus.COMPLETED
        assert reloaded.total_work_time == 30
        # stopping the assignment leaves the running task open
        assert reloaded.tasks[1].stopped_at is None


class TestUnits:
    @pytest.mark.parametrize("status, expected", [
        (UnitStatus.BREAKDOWN, True),
        (UnitStatus.INACTIVE, True),
        ("inactive", True),
        (UnitStatus.ACTIVE, False),
        ("SCRAPPED", False),
        (None, False),
    ])
    def test_can_receive_activity(self, status, expected):
        assert can_receive_activity(Unit(code="X", type="DT", brand="OTHER", status=status)) is expected


def test_get_db_closes_session(monkeypatch):
    closed = []

    class FakeSession:
        def close(self):
            closed.append(True)

    monkeypatch.setattr(database, "SessionLocal", FakeSession)
    gen = database.get_db()
    db = next(gen)
    assert isinstance(db, FakeSession)
    gen.close()
    assert closed == [True]
