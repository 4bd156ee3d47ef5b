"""
Manual rotation edits and overlap checks.

Manual assignments are exempt from round-robin bookkeeping. Overlaps with
the intern's other rotations are rejected unless the allow_overlap setting
(or an explicit argument) permits them.

Reassignment candidates exclude the units an intern has completed and the
unit they are in today. Moving an intern off a unit therefore frees that
unit for a later reassignment, while completed units stay excluded.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from . import dates
from .activity import record_activity
from .errors import ValidationError
from .models import Rotation, Unit, ACTIVITY_REASSIGNMENT, ACTIVITY_ROTATION_UPDATE
from .repository import get_intern, get_unit, get_rotation, intern_rotations, ordered_units
from .schedule import pick_current, rotation_row
from .settings import get_setting

logger = logging.getLogger(__name__)


def _require_day(value, field: str):
    day = dates.parse_day(value)
    if day is None:
        raise ValidationError(f"{field} must be a valid date (YYYY-MM-DD)")
    return day


def check_conflicts(
    db: Session,
    intern_id: int,
    candidate_start,
    candidate_end,
    exclude_rotation_id: Optional[int] = None,
) -> List[Rotation]:
    """Rotations of the intern overlapping [candidate_start, candidate_end] (closed)."""
    start = _require_day(candidate_start, "start_date")
    end = _require_day(candidate_end, "end_date")
    if end < start:
        raise ValidationError("end_date must not be before start_date")
    q = db.query(Rotation).filter(
        Rotation.intern_id == intern_id,
        Rotation.start_date <= end,
        Rotation.end_date >= start,
    )
    if exclude_rotation_id is not None:
        q = q.filter(Rotation.id != exclude_rotation_id)
    return q.order_by(Rotation.start_date, Rotation.id).all()


def _overlap_allowed(db: Session, allow_overlap: Optional[bool]) -> bool:
    if allow_overlap is not None:
        return allow_overlap
    return bool(get_setting(db, "allow_overlap"))


def _reject_conflicts(db, intern_id, start, end, exclude_id, allow_overlap):
    conflicts = check_conflicts(db, intern_id, start, end, exclude_rotation_id=exclude_id)
    if conflicts and not _overlap_allowed(db, allow_overlap):
        spans = ", ".join(
            f"{r.unit_name or r.unit_id} {dates.format_day(r.start_date)}..{dates.format_day(r.end_date)}"
            for r in conflicts
        )
        raise ValidationError(f"Intern has conflicting rotation(s) during this period: {spans}")
    return conflicts


def create_manual_rotation(
    db: Session,
    intern_id: int,
    unit_id: int,
    start_date,
    end_date=None,
    allow_overlap: Optional[bool] = None,
) -> Rotation:
    intern = get_intern(db, intern_id)
    unit = get_unit(db, unit_id)
    start = _require_day(start_date, "start_date")
    end = _require_day(end_date, "end_date") if end_date is not None else dates.end_for_duration(start, unit.duration_days)
    _reject_conflicts(db, intern_id, start, end, None, allow_overlap)

    rotation = Rotation(
        intern_id=intern_id, unit_id=unit_id, start_date=start, end_date=end, is_manual_assignment=True,
    )
    db.add(rotation)
    db.flush()
    record_activity(
        db, ACTIVITY_ROTATION_UPDATE,
        f"{intern.name} manually assigned to {unit.name} ({dates.format_day(start)} to {dates.format_day(end)})",
        intern=intern, unit=unit,
    )
    return rotation


def reassign_rotation(
    db: Session,
    rotation_id: int,
    unit_id: int,
    start_date=None,
    allow_overlap: Optional[bool] = None,
) -> Rotation:
    """Move a rotation to another unit; the new unit's duration sets the end date."""
    rotation = get_rotation(db, rotation_id)
    unit = get_unit(db, unit_id)
    start = _require_day(start_date, "start_date") if start_date is not None else rotation.start_date
    end = dates.end_for_duration(start, unit.duration_days)
    _reject_conflicts(db, rotation.intern_id, start, end, rotation.id, allow_overlap)

    previous = rotation.unit_name or f"unit {rotation.unit_id}"
    rotation.unit_id = unit.id
    rotation.unit = unit
    rotation.start_date = start
    rotation.end_date = end
    rotation.is_manual_assignment = True
    db.flush()
    record_activity(
        db, ACTIVITY_REASSIGNMENT,
        f"{rotation.intern.name} reassigned from {previous} to {unit.name} "
        f"({dates.format_day(start)} to {dates.format_day(end)})",
        intern=rotation.intern, unit=unit,
    )
    logger.info("Rotation %s reassigned to unit %s", rotation.id, unit.id)
    return rotation


def update_rotation(
    db: Session,
    rotation_id: int,
    unit_id: Optional[int] = None,
    start_date=None,
    end_date=None,
    allow_overlap: Optional[bool] = None,
) -> Rotation:
    """Explicit edit of a rotation's unit and/or dates."""
    rotation = get_rotation(db, rotation_id)
    unit = get_unit(db, unit_id) if unit_id is not None else rotation.unit
    start = _require_day(start_date, "start_date") if start_date is not None else rotation.start_date
    end = _require_day(end_date, "end_date") if end_date is not None else rotation.end_date
    _reject_conflicts(db, rotation.intern_id, start, end, rotation.id, allow_overlap)

    if unit is not None:
        rotation.unit_id = unit.id
        rotation.unit = unit
    rotation.start_date = start
    rotation.end_date = end
    rotation.is_manual_assignment = True
    db.flush()
    record_activity(
        db, ACTIVITY_ROTATION_UPDATE,
        f"{rotation.intern.name} rotation {rotation.id} set to {rotation.unit_name} "
        f"({dates.format_day(start)} to {dates.format_day(end)})",
        intern=rotation.intern, unit=unit,
    )
    return rotation


def delete_rotation(db: Session, rotation_id: int) -> None:
    rotation = get_rotation(db, rotation_id)
    record_activity(
        db, ACTIVITY_ROTATION_UPDATE,
        f"{rotation.intern.name} rotation in {rotation.unit_name} "
        f"({dates.format_day(rotation.start_date)} to {dates.format_day(rotation.end_date)}) deleted",
        intern=rotation.intern, unit=rotation.unit,
    )
    db.delete(rotation)
    db.flush()


def reassignment_candidates(db: Session, intern_id: int, today=None) -> List[Unit]:
    """Catalog units the intern may be moved to today."""
    day = dates.reference_day(today)
    get_intern(db, intern_id)
    rows = intern_rotations(db, intern_id)
    excluded = {r.unit_id for r in rows if dates.is_before(r.end_date, day)}
    current = pick_current([rotation_row(r) for r in rows], day)
    if current is not None:
        excluded.add(current["unit_id"])
    return [u for u in ordered_units(db) if u.id not in excluded]
