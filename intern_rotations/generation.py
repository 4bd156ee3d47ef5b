"""Bulk generation of round-robin rotation plans."""
import logging
from typing import Dict, List, Sequence

from sqlalchemy.orm import Session

from . import dates
from .activity import record_activity
from .models import (
    Intern, Rotation, Unit, STATUS_ACTIVE, STATUS_EXTENDED, ACTIVITY_ROTATION_UPDATE,
)
from .repository import ordered_units
from .status import internship_end

logger = logging.getLogger(__name__)


def plan_rotations(intern_id: int, units: Sequence[Unit], start, total_days: int, offset: int = 0) -> List[dict]:
    """
    Back-to-back rotations covering `total_days` days from `start`, cycling
    through `units` beginning at units[offset]. The last rotation is cut
    short at the end of the window.
    """
    first = dates.parse_day(start)
    if not units or first is None or total_days <= 0:
        return []
    last_day = dates.end_for_duration(first, total_days)
    k = offset % len(units)
    cycle = list(units[k:]) + list(units[:k])

    plan = []
    cursor = first
    i = 0
    while cursor <= last_day:
        unit = cycle[i % len(cycle)]
        end = min(dates.end_for_duration(cursor, unit.duration_days), last_day)
        plan.append({
            "intern_id": intern_id,
            "unit_id": unit.id,
            "start_date": cursor,
            "end_date": end,
            "is_manual_assignment": False,
        })
        cursor = dates.add_days(end, 1)
        i += 1
    return plan


def _offset_after(catalog: Sequence[Unit], unit_id) -> int:
    ids = [u.id for u in catalog]
    return ids.index(unit_id) + 1 if unit_id in ids else 0


def generate_rotations(db: Session, start=None, today=None) -> Dict[str, object]:
    """
    Regenerate automatic rotations from `start` on for every Active/Extended
    intern. Manual assignments and rotations starting before `start` are
    kept; the plan resumes after the latest kept rotation.
    """
    gen_start = dates.reference_day(start if start is not None else today)
    catalog = ordered_units(db)
    if not catalog:
        logger.warning("Rotation generation skipped: unit catalog is empty")
        return {"start_date": dates.format_day(gen_start), "interns": 0, "rotations": 0}

    interns = (
        db.query(Intern)
        .filter(Intern.status.in_([STATUS_ACTIVE, STATUS_EXTENDED]))
        .order_by(Intern.id)
        .all()
    )
    intern_count = 0
    rotation_count = 0
    for index, intern in enumerate(interns):
        db.query(Rotation).filter(
            Rotation.intern_id == intern.id,
            Rotation.start_date >= gen_start,
            Rotation.is_manual_assignment.is_(False),
        ).delete(synchronize_session=False)

        kept = (
            db.query(Rotation)
            .filter(Rotation.intern_id == intern.id)
            .order_by(Rotation.end_date.desc(), Rotation.id.desc())
            .first()
        )
        cursor = max(intern.start_date, gen_start)
        offset = index
        if kept is not None:
            cursor = max(cursor, dates.add_days(kept.end_date, 1))
            offset = _offset_after(catalog, kept.unit_id)

        last_day = internship_end(intern)
        plan = plan_rotations(intern.id, catalog, cursor, dates.span_days(cursor, last_day), offset)
        if not plan:
            continue
        db.add_all(Rotation(**row) for row in plan)
        record_activity(
            db, ACTIVITY_ROTATION_UPDATE,
            f"Generated {len(plan)} rotation(s) for {intern.name} from {dates.format_day(cursor)}",
            intern=intern,
        )
        intern_count += 1
        rotation_count += len(plan)

    db.flush()
    db.expire_all()
    logger.info("Generated %d rotations for %d intern(s) from %s", rotation_count, intern_count, gen_start)
    return {"start_date": dates.format_day(gen_start), "interns": intern_count, "rotations": rotation_count}
