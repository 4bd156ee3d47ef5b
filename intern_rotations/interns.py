"""Intern registration, updates and schedule reads."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from . import dates
from .activity import record_activity
from .advance import catch_up
from .errors import ValidationError
from .generation import plan_rotations
from .models import (
    Intern, Rotation, BATCHES, GENDERS, STATUSES, STATUS_ACTIVE, ACTIVITY_NEW_INTERN,
)
from .repository import get_intern, get_unit, intern_rotations, ordered_units
from .schedule import Schedule, build_schedule, rotation_row, unit_row
from .settings import get_setting
from .status import internship_days, sync_status

logger = logging.getLogger(__name__)


def _check_choice(value, choices, field):
    if value not in choices:
        raise ValidationError(f"{field} must be one of {', '.join(choices)}")


def next_batch(db: Session) -> str:
    """Alternate A/B by registration order."""
    return BATCHES[db.query(Intern).count() % 2]


def list_interns(db: Session, batch: Optional[str] = None, status: Optional[str] = None) -> List[Intern]:
    q = db.query(Intern)
    if batch:
        q = q.filter(Intern.batch == batch)
    if status:
        q = q.filter(Intern.status == status)
    return q.order_by(Intern.start_date.desc(), Intern.id).all()


def create_intern(
    db: Session,
    name: str,
    gender: str,
    start_date,
    batch: Optional[str] = None,
    phone_number: Optional[str] = None,
    initial_unit_id: Optional[int] = None,
    today=None,
) -> Intern:
    day = dates.reference_day(today)
    start = dates.parse_day(start_date)
    if start is None:
        raise ValidationError("start_date must be a valid date (YYYY-MM-DD)")
    if not (name or "").strip():
        raise ValidationError("name is required")
    _check_choice(gender, GENDERS, "gender")
    if batch is not None:
        _check_choice(batch, BATCHES, "batch")
    unit = get_unit(db, initial_unit_id) if initial_unit_id is not None else None

    intern = Intern(
        name=name.strip(),
        gender=gender,
        batch=batch or next_batch(db),
        start_date=start,
        phone_number=phone_number or None,
        status=STATUS_ACTIVE,
        extension_days=0,
    )
    db.add(intern)
    db.flush()
    record_activity(db, ACTIVITY_NEW_INTERN, f"{intern.name} registered (batch {intern.batch})", intern=intern)

    if unit is not None:
        end = dates.end_for_duration(start, unit.duration_days)
        db.add(Rotation(intern_id=intern.id, unit_id=unit.id, start_date=start, end_date=end, is_manual_assignment=True))
    elif get_setting(db, "auto_generate_on_create"):
        generate_for_intern(db, intern)

    sync_status(db, intern, day)
    db.flush()
    logger.info("Registered intern %s (%s, batch %s)", intern.id, intern.name, intern.batch)
    return intern


def generate_for_intern(db: Session, intern: Intern) -> int:
    """Round-robin plan for one new intern, offset by their registration index."""
    catalog = ordered_units(db)
    index = db.query(Intern).filter(Intern.id < intern.id).count()
    plan = plan_rotations(intern.id, catalog, intern.start_date, internship_days(intern), offset=index)
    db.add_all(Rotation(**row) for row in plan)
    return len(plan)


def update_intern(db: Session, intern_id: int, changes: dict, today=None) -> Intern:
    intern = get_intern(db, intern_id)
    day = dates.reference_day(today)
    if "start_date" in changes:
        start = dates.parse_day(changes["start_date"])
        if start is None:
            raise ValidationError("start_date must be a valid date (YYYY-MM-DD)")
        changes = {**changes, "start_date": start}
    if "gender" in changes:
        _check_choice(changes["gender"], GENDERS, "gender")
    if "batch" in changes:
        _check_choice(changes["batch"], BATCHES, "batch")
    if "status" in changes:
        _check_choice(changes["status"], STATUSES, "status")
    for k, v in changes.items():
        setattr(intern, k, v)
    if "status" not in changes:
        sync_status(db, intern, day)
    db.flush()
    return intern


def delete_intern(db: Session, intern_id: int) -> None:
    intern = get_intern(db, intern_id)
    db.delete(intern)
    db.flush()
    logger.info("Deleted intern %s and their rotations", intern_id)


def intern_schedule(db: Session, intern_id: int, today=None, advance: bool = True) -> Schedule:
    """Sync status, let auto-advance catch up, then build the schedule view."""
    day = dates.reference_day(today)
    intern = get_intern(db, intern_id)
    sync_status(db, intern, day)
    if advance:
        catch_up(db, intern_id, day)
    rows = [rotation_row(r) for r in intern_rotations(db, intern_id)]
    units = [unit_row(u) for u in ordered_units(db)]
    return build_schedule(intern_id, rows, units, day)
