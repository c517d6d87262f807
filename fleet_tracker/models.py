from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from fleet_tracker.core.enums import (
    ActivityName,
    ActivityStatus,
    AssignmentStatus,
    PauseReason,
    UnitStatus,
)
from fleet_tracker.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Unit(Base):
    __tablename__ = "units"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, nullable=False)
    type = Column(String, nullable=False)
    brand = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(UnitStatus, native_enum=False, length=20), nullable=False, default=UnitStatus.ACTIVE)

    activities = relationship("Activity", back_populates="unit",
                              cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint('code', name='uq_unit_code'),
    )


class Mechanic(Base):
    __tablename__ = "mechanics"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    nrp = Column(Integer, nullable=True, unique=True)  # nomor registrasi pegawai

    assignments = relationship("ActivityMechanic", back_populates="mechanic")


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False)
    name = Column(Enum(ActivityName, native_enum=False, length=40), nullable=False)
    description = Column(Text, nullable=True)
    remarks = Column(Text, nullable=True)
    status = Column(Enum(ActivityStatus, native_enum=False, length=20), nullable=False,
                    default=ActivityStatus.PENDING)
    estimated_start = Column(DateTime(timezone=True), nullable=True)
    group_leader_id = Column(Integer, ForeignKey("mechanics.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    unit = relationship("Unit", back_populates="activities")
    group_leader = relationship("Mechanic", foreign_keys=[group_leader_id])
    mechanics = relationship("ActivityMechanic", back_populates="activity",
                             order_by="ActivityMechanic.id",
                             cascade="all, delete-orphan", passive_deletes=True)

    def __init__(self, **kwargs):
        kwargs.setdefault("status", ActivityStatus.PENDING)
        super().__init__(**kwargs)


class ActivityMechanic(Base):
    """One mechanic's participation in one activity."""
    __tablename__ = "activity_mechanics"

    id = Column(Integer, primary_key=True, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False)
    mechanic_id = Column(Integer, ForeignKey("mechanics.id"), nullable=False)
    status = Column(Enum(AssignmentStatus, native_enum=False, length=20), nullable=False,
                    default=AssignmentStatus.PENDING)
    started_at = Column(DateTime(timezone=True), nullable=True)
    paused_at = Column(DateTime(timezone=True), nullable=True)
    stopped_at = Column(DateTime(timezone=True), nullable=True)
    pause_reason = Column(Enum(PauseReason, native_enum=False, length=20), nullable=True)
    total_work_time = Column(Integer, nullable=False, default=0)  # minutes

    activity = relationship("Activity", back_populates="mechanics")
    mechanic = relationship("Mechanic", back_populates="assignments")
    tasks = relationship("ActivityTask", back_populates="assignment",
                         order_by="ActivityTask.order",
                         cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint('activity_id', 'mechanic_id', name='uq_activity_mechanic'),
    )

    def __init__(self, **kwargs):
        # Column defaults only apply on flush; the core reads unsaved records too
        kwargs.setdefault("status", AssignmentStatus.PENDING)
        kwargs.setdefault("total_work_time", 0)
        super().__init__(**kwargs)


class ActivityTask(Base):
    __tablename__ = "activity_tasks"

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(Integer, ForeignKey("activity_mechanics.id", ondelete="CASCADE"), nullable=False)
    task_name = Column(String, nullable=False)
    order = Column(Integer, nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    stopped_at = Column(DateTime(timezone=True), nullable=True)

    assignment = relationship("ActivityMechanic", back_populates="tasks")
