"""Unit catalog management and today's coverage per unit."""
import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session, joinedload

from . import dates
from .activity import record_activity
from .coverage import classify_batches, derive_workload
from .errors import ValidationError
from .models import (
    Rotation, Unit, WorkloadHistory, BATCHES, WORKLOADS, ACTIVITY_UNIT_CHANGE,
)
from .repository import get_unit, ordered_units
from .settings import coverage_thresholds, workload_thresholds

logger = logging.getLogger(__name__)

MAX_DURATION_DAYS = 365

DEFAULT_UNITS = [
    ("Adult Neurology", 2, "Medium"),
    ("Acute Stroke", 2, "High"),
    ("Neurosurgery", 2, "High"),
    ("Geriatrics", 2, "Medium"),
    ("Orthopedic Inpatients", 2, "High"),
    ("Orthopedic Outpatients", 2, "Medium"),
    ("Electrophysiology", 2, "Low"),
    ("Exercise Immunology", 2, "Low"),
    ("Women's Health", 2, "Medium"),
    ("Pediatrics Inpatients", 2, "High"),
    ("Pediatrics Outpatients", 2, "Medium"),
    ("Cardio Thoracic Unit", 2, "High"),
]


def _check_name(db: Session, name, exclude_id: Optional[int] = None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Unit name is required")
    q = db.query(Unit).filter(Unit.name == name)
    if exclude_id is not None:
        q = q.filter(Unit.id != exclude_id)
    if q.first():
        raise ValidationError(f"A unit named {name} already exists")
    return name


def _check_duration(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= MAX_DURATION_DAYS:
        raise ValidationError(f"duration_days must be an integer between 1 and {MAX_DURATION_DAYS}")
    return value


def _check_patient_count(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError("patient_count must be a non-negative integer")
    return value


def _check_workload(value) -> str:
    if value not in WORKLOADS:
        raise ValidationError(f"workload must be one of {', '.join(WORKLOADS)}")
    return value


def _current_rotations(db: Session, day) -> List[Rotation]:
    return (
        db.query(Rotation)
        .options(joinedload(Rotation.intern), joinedload(Rotation.unit))
        .filter(Rotation.start_date <= day, Rotation.end_date >= day)
        .order_by(Rotation.unit_id, Rotation.intern_id)
        .all()
    )


def current_coverage(db: Session, today=None) -> Dict[int, dict]:
    """{unit_id: {"A": n, "B": n, "interns": [...]}} for rotations active today."""
    day = dates.reference_day(today)
    out: Dict[int, dict] = {}
    for r in _current_rotations(db, day):
        entry = out.setdefault(r.unit_id, {**{b: 0 for b in BATCHES}, "interns": []})
        entry[r.intern.batch] = entry.get(r.intern.batch, 0) + 1
        entry["interns"].append({"id": r.intern.id, "name": r.intern.name, "batch": r.intern.batch})
    return out


def list_units_with_coverage(db: Session, today=None) -> List[dict]:
    day = dates.reference_day(today)
    thresholds = coverage_thresholds(db)
    coverage = current_coverage(db, day)
    rows = []
    for unit in ordered_units(db):
        entry = coverage.get(unit.id, {**{b: 0 for b in BATCHES}, "interns": []})
        batch_counts = {b: entry[b] for b in BATCHES}
        rows.append({
            "id": unit.id,
            "name": unit.name,
            "duration_days": unit.duration_days,
            "workload": unit.workload,
            "patient_count": unit.patient_count,
            "description": unit.description,
            "position": unit.position,
            "current_interns": sum(batch_counts.values()),
            "batch_a": batch_counts["A"],
            "batch_b": batch_counts["B"],
            "intern_names": [i["name"] for i in entry["interns"]],
            "coverage_status": classify_batches(batch_counts, unit.workload, thresholds),
        })
    return rows


def create_unit(
    db: Session,
    name: str,
    duration_days: int,
    workload: Optional[str] = None,
    patient_count: int = 0,
    description: Optional[str] = None,
) -> Unit:
    name = _check_name(db, name)
    _check_duration(duration_days)
    _check_patient_count(patient_count)
    if workload is None:
        workload = derive_workload(patient_count, workload_thresholds(db))
    _check_workload(workload)

    last = db.query(Unit.position).order_by(Unit.position.desc()).first()
    unit = Unit(
        name=name,
        duration_days=duration_days,
        workload=workload,
        patient_count=patient_count,
        description=description,
        position=(last[0] if last else 0) + 1,
    )
    db.add(unit)
    db.flush()
    record_activity(db, ACTIVITY_UNIT_CHANGE, f"Unit {unit.name} added ({duration_days} days, {workload})", unit=unit)
    logger.info("Created unit %s (%s)", unit.id, unit.name)
    return unit


def update_unit(db: Session, unit_id: int, changes: dict) -> Unit:
    unit = get_unit(db, unit_id)
    if "name" in changes:
        changes = {**changes, "name": _check_name(db, changes["name"], exclude_id=unit.id)}
    if "duration_days" in changes:
        _check_duration(changes["duration_days"])
    if "workload" in changes:
        _check_workload(changes["workload"])
    if "patient_count" in changes:
        _check_patient_count(changes["patient_count"])
    for k, v in changes.items():
        setattr(unit, k, v)
    db.flush()
    record_activity(db, ACTIVITY_UNIT_CHANGE, f"Unit {unit.name} updated: {', '.join(sorted(changes))}", unit=unit)
    return unit


def update_patient_count(
    db: Session, unit_id: int, patient_count: int, notes: Optional[str] = None, today=None,
) -> Unit:
    """Set the patient count, re-derive workload and record it in the history."""
    day = dates.reference_day(today)
    unit = get_unit(db, unit_id)
    _check_patient_count(patient_count)
    old = unit.workload
    unit.patient_count = patient_count
    unit.workload = derive_workload(patient_count, workload_thresholds(db))
    db.add(WorkloadHistory(
        unit_id=unit.id,
        workload=unit.workload,
        week_start_date=dates.add_days(day, -day.weekday()),
        notes=notes,
    ))
    if unit.workload != old:
        record_activity(
            db, ACTIVITY_UNIT_CHANGE,
            f"Unit {unit.name} workload {old} -> {unit.workload} ({patient_count} patients)", unit=unit,
        )
    db.flush()
    return unit


def workload_history(db: Session, unit_id: int, limit: int = 52) -> List[WorkloadHistory]:
    get_unit(db, unit_id)
    return (
        db.query(WorkloadHistory)
        .filter(WorkloadHistory.unit_id == unit_id)
        .order_by(WorkloadHistory.week_start_date.desc(), WorkloadHistory.id.desc())
        .limit(limit)
        .all()
    )


def reorder_units(db: Session, unit_ids: Sequence[int]) -> List[Unit]:
    """Rewrite catalog positions to 1..n following `unit_ids`."""
    catalog = ordered_units(db)
    by_id = {u.id: u for u in catalog}
    if len(unit_ids) != len(set(unit_ids)) or set(unit_ids) != set(by_id):
        raise ValidationError("unit_ids must list every unit exactly once")
    for position, unit_id in enumerate(unit_ids, start=1):
        by_id[unit_id].position = position
    db.flush()
    record_activity(
        db, ACTIVITY_UNIT_CHANGE,
        "Unit order changed: " + ", ".join(by_id[i].name for i in unit_ids),
    )
    logger.info("Reordered %d units", len(unit_ids))
    return ordered_units(db)


def delete_unit(db: Session, unit_id: int, today=None) -> None:
    """Remove a unit and its past rotations; refused while a rotation in it is still running or planned."""
    day = dates.reference_day(today)
    unit = get_unit(db, unit_id)
    busy = (
        db.query(Rotation)
        .filter(Rotation.unit_id == unit_id, Rotation.end_date >= day)
        .count()
    )
    if busy:
        raise ValidationError(
            f"Cannot delete {unit.name}: {busy} rotation(s) are current or upcoming"
        )
    record_activity(db, ACTIVITY_UNIT_CHANGE, f"Unit {unit.name} deleted", unit=unit)
    db.delete(unit)
    db.flush()
    logger.info("Deleted unit %s (%s)", unit_id, unit.name)


def seed_default_units(db: Session) -> List[Unit]:
    """Add any missing default units; existing names are left alone."""
    existing = {name for (name,) in db.query(Unit.name)}
    created = []
    for name, duration, workload in DEFAULT_UNITS:
        if name in existing:
            continue
        created.append(create_unit(db, name, duration, workload=workload))
    if created:
        logger.info("Seeded %d default units", len(created))
    return created
