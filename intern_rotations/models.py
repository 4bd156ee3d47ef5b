"""SQLAlchemy models for the rotation DB."""
from datetime import datetime
from typing import Optional
from sqlalchemy import (
    Column, Integer, String, Boolean, Date, DateTime, ForeignKey, Text, Index,
)
from sqlalchemy.orm import relationship

from .database import Base

GENDERS = ("Male", "Female")
BATCHES = ("A", "B")
WORKLOADS = ("Low", "Medium", "High")

STATUS_ACTIVE = "Active"
STATUS_EXTENDED = "Extended"
STATUS_COMPLETED = "Completed"
STATUSES = (STATUS_ACTIVE, STATUS_EXTENDED, STATUS_COMPLETED)

EXTENSION_REASONS = ("sign_out", "presentation", "internal_query", "leave", "other")

ACTIVITY_EXTENSION = "extension"
ACTIVITY_REASSIGNMENT = "reassignment"
ACTIVITY_UNIT_CHANGE = "unit_change"
ACTIVITY_STATUS_CHANGE = "status_change"
ACTIVITY_NEW_INTERN = "new_intern"
ACTIVITY_AUTO_ADVANCE = "auto_advance"
ACTIVITY_ROTATION_UPDATE = "rotation_update"
ACTIVITY_TYPES = (
    ACTIVITY_EXTENSION, ACTIVITY_REASSIGNMENT, ACTIVITY_UNIT_CHANGE, ACTIVITY_STATUS_CHANGE,
    ACTIVITY_NEW_INTERN, ACTIVITY_AUTO_ADVANCE, ACTIVITY_ROTATION_UPDATE,
)


class Intern(Base):
    __tablename__ = "interns"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    gender = Column(String(10), nullable=False)  # Male, Female
    batch = Column(String(1), nullable=False, index=True)  # A, B
    start_date = Column(Date, nullable=False, index=True)
    phone_number = Column(String(30), nullable=True)
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE, index=True)
    extension_days = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    rotations = relationship(
        "Rotation", back_populates="intern", cascade="all, delete-orphan", passive_deletes=True,
    )
    extension_reasons = relationship(
        "ExtensionReason", back_populates="intern", cascade="all, delete-orphan", passive_deletes=True,
    )

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED


class Unit(Base):
    __tablename__ = "units"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    duration_days = Column(Integer, nullable=False)  # 1..365
    workload = Column(String(10), nullable=False, default="Medium")  # Low, Medium, High
    patient_count = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0, index=True)  # round-robin order
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    rotations = relationship(
        "Rotation", back_populates="unit", cascade="all, delete-orphan", passive_deletes=True,
    )
    workload_history = relationship(
        "WorkloadHistory", back_populates="unit", cascade="all, delete-orphan", passive_deletes=True,
    )


class Rotation(Base):
    __tablename__ = "rotations"
    id = Column(Integer, primary_key=True, index=True)
    intern_id = Column(Integer, ForeignKey("interns.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)  # inclusive
    is_manual_assignment = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    intern = relationship("Intern", back_populates="rotations")
    unit = relationship("Unit", back_populates="rotations")

    __table_args__ = (Index("ix_rotations_intern_start", "intern_id", "start_date"),)

    @property
    def unit_name(self) -> Optional[str]:
        return self.unit.name if self.unit else None


class ExtensionReason(Base):
    __tablename__ = "extension_reasons"
    id = Column(Integer, primary_key=True, index=True)
    intern_id = Column(Integer, ForeignKey("interns.id", ondelete="CASCADE"), nullable=False, index=True)
    extension_days = Column(Integer, nullable=False)  # signed change granted by this call
    reason = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    intern = relationship("Intern", back_populates="extension_reasons")


class ActivityLog(Base):
    """Append-only audit trail; names are copied so rows outlive their intern/unit."""
    __tablename__ = "activity_log"
    id = Column(Integer, primary_key=True, index=True)
    activity_type = Column(String(20), nullable=False, index=True)
    intern_id = Column(Integer, ForeignKey("interns.id", ondelete="SET NULL"), nullable=True, index=True)
    intern_name = Column(String(100), nullable=True)
    unit_id = Column(Integer, nullable=True, index=True)
    unit_name = Column(String(100), nullable=True)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class WorkloadHistory(Base):
    __tablename__ = "workload_history"
    id = Column(Integer, primary_key=True, index=True)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True)
    workload = Column(String(10), nullable=False)
    week_start_date = Column(Date, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    unit = relationship("Unit", back_populates="workload_history")


class Setting(Base):
    """Runtime-adjustable rule. JSON: value_json holds the encoded value."""
    __tablename__ = "settings"
    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value_json = Column(Text, nullable=False)
    description = Column(String(200), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
