"""
Auto-advance engine.

Runs lazily, when a schedule is read or on an explicit trigger: once an
intern's latest rotation has ended, the next unit is appended as a new
rotation that starts the day after the previous one ended. A gap between
that day and today is still owed, so the new start is never moved up to
today.

Per intern the states are:
  open       latest rotation ends today or later  -> nothing to do
  exhausted  every catalog unit already visited   -> nothing to do
  gap        otherwise (and intern not Completed) -> append next unit
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import dates
from .activity import record_activity
from .errors import NotFoundError, InconsistentStateError
from .models import Intern, Rotation, Unit, ACTIVITY_AUTO_ADVANCE, STATUS_COMPLETED
from .repository import get_intern, ordered_units
from .settings import get_setting

logger = logging.getLogger(__name__)


@dataclass
class AdvanceResult:
    advanced: bool
    reason: str
    rotation: Optional[Rotation] = None

    def to_dict(self) -> dict:
        return {
            "advanced": self.advanced,
            "reason": self.reason,
            "rotation_id": self.rotation.id if self.rotation else None,
        }


def next_unit(catalog: Sequence[Unit], last_unit_id: Optional[int], visited: Set[int]) -> Optional[Unit]:
    """
    Round-robin successor of last_unit_id in the ordered catalog, skipping
    units the intern has already visited. A unit missing from the catalog
    (deleted) counts as index -1, so the walk starts at the first unit.
    """
    ids = [u.id for u in catalog]
    idx = ids.index(last_unit_id) if last_unit_id in ids else -1
    n = len(catalog)
    for step in range(1, n + 1):
        unit = catalog[(idx + step) % n]
        if unit.id not in visited:
            return unit
    return None


def _skip(reason: str) -> AdvanceResult:
    return AdvanceResult(advanced=False, reason=reason)


def _advance(db: Session, intern_id: int, today) -> AdvanceResult:
    # Row lock serialises concurrent advances for one intern (no-op on SQLite)
    intern = get_intern(db, intern_id, for_update=True)
    if intern.status == STATUS_COMPLETED:
        return _skip("intern has completed the internship")

    last = (
        db.query(Rotation)
        .filter(Rotation.intern_id == intern_id)
        .order_by(Rotation.end_date.desc(), Rotation.id.desc())
        .first()
    )
    if last is None:
        return _skip("intern has no rotation to advance from")
    if last.end_date >= today:
        return _skip("latest rotation is still open")

    catalog = ordered_units(db)
    if not catalog:
        raise InconsistentStateError("unit catalog is empty")

    visited = {
        unit_id for (unit_id,) in
        db.query(Rotation.unit_id).filter(Rotation.intern_id == intern_id).distinct()
    }
    unit = next_unit(catalog, last.unit_id, visited)
    if unit is None:
        return _skip("intern has rotated through every unit")

    start = dates.add_days(last.end_date, 1)
    end = dates.end_for_duration(start, unit.duration_days)

    already = (
        db.query(Rotation.id)
        .filter(Rotation.intern_id == intern_id, Rotation.start_date >= start)
        .first()
    )
    if already:
        return _skip("next rotation already exists")

    rotation = Rotation(
        intern_id=intern_id,
        unit_id=unit.id,
        start_date=start,
        end_date=end,
        is_manual_assignment=False,
    )
    db.add(rotation)
    db.flush()
    record_activity(
        db, ACTIVITY_AUTO_ADVANCE,
        f"{intern.name} advanced to {unit.name} ({dates.format_day(start)} to {dates.format_day(end)})",
        intern=intern, unit=unit,
    )
    logger.info("Intern %s advanced to unit %s starting %s", intern_id, unit.id, start)
    return AdvanceResult(advanced=True, reason="advanced", rotation=rotation)


def auto_advance(db: Session, intern_id: int, today=None) -> AdvanceResult:
    """
    Append the intern's next rotation if their latest one has ended.

    Only a malformed `today` raises. This runs on read paths, so every other
    failure is reported as a result with advanced=False and a reason.
    """
    day = dates.reference_day(today)
    try:
        result = _advance(db, intern_id, day)
    except NotFoundError as exc:
        logger.debug("Auto-advance skipped for intern %s: %s", intern_id, exc.message)
        return _skip(exc.message)
    except InconsistentStateError as exc:
        logger.warning("Auto-advance skipped for intern %s: %s", intern_id, exc.message)
        return _skip(exc.message)
    except SQLAlchemyError:
        logger.exception("Auto-advance failed for intern %s", intern_id)
        db.rollback()
        return _skip("database error")
    if not result.advanced:
        logger.debug("No advance for intern %s: %s", intern_id, result.reason)
    return result


def auto_rotation_enabled(db: Session) -> bool:
    try:
        return bool(get_setting(db, "auto_rotation_enabled"))
    except SQLAlchemyError:
        logger.exception("Could not read auto_rotation_enabled")
        db.rollback()
        return False


def catch_up(db: Session, intern_id: int, today=None) -> List[Rotation]:
    """
    Advance repeatedly until the intern has an open rotation or nothing is
    left; each step chains off the previous one's end date.
    """
    if not auto_rotation_enabled(db):
        return []
    max_steps = db.query(Unit).count()
    created = []
    for _ in range(max_steps):
        result = auto_advance(db, intern_id, today)
        if not result.advanced:
            break
        created.append(result.rotation)
    return created


def advance_all(db: Session, today=None) -> Dict[int, int]:
    """catch_up() for every intern not yet completed; returns {intern_id: rotations created}."""
    if not auto_rotation_enabled(db):
        logger.info("Auto-rotation disabled, skipping advance run")
        return {}
    ids = [
        intern_id for (intern_id,) in
        db.query(Intern.id).filter(Intern.status != STATUS_COMPLETED).order_by(Intern.id)
    ]
    out = {}
    for intern_id in ids:
        created = catch_up(db, intern_id, today)
        if created:
            out[intern_id] = len(created)
    logger.info("Advance run created rotations for %d intern(s)", len(out))
    return out
