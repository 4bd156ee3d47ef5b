"""
Internship extensions.

An intern's `extension_days` is a running total. Each call moves the end of
one rotation by the change in that total (not the total itself), so the
rotation row only carries the latest adjustment.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from . import dates
from .activity import record_activity
from .config import config
from .errors import ValidationError
from .models import (
    ExtensionReason, Intern, Rotation, EXTENSION_REASONS, ACTIVITY_EXTENSION,
)
from .repository import get_intern, get_unit, intern_rotations
from .status import sync_status

logger = logging.getLogger(__name__)

MODE_TOTAL = "total"
MODE_DELTA = "delta"


def _latest(rows, key):
    return max(rows, key=key) if rows else None


def rotation_to_adjust(
    db: Session, intern_id: int, unit_id: Optional[int], today,
) -> Tuple[Optional[Rotation], Optional[str]]:
    """
    The rotation an extension should lengthen, or (None, why not).

    With a unit: that unit's active rotation. Without: the intern's only
    current rotation. Several current rotations and no unit is ambiguous.
    Failing that, an ended rotation is used only when it is the intern's
    latest one; moving an earlier row would overlap whatever follows it.
    """
    all_rows = intern_rotations(db, intern_id)
    rows = all_rows
    if unit_id is not None:
        rows = [r for r in rows if r.unit_id == unit_id]
    active = [r for r in rows if dates.includes(r.start_date, r.end_date, today)]
    ended = [r for r in rows if dates.is_before(r.end_date, today)]

    if unit_id is None and len(active) > 1:
        return None, "several current rotations; name the unit to extend"
    if active:
        return _latest(active, key=lambda r: (r.start_date, r.id)), None
    if ended:
        last = _latest(ended, key=lambda r: (r.end_date, r.id))
        if any(r.id != last.id and dates.is_after(r.start_date, last.start_date) for r in all_rows):
            return None, "a later rotation follows the most recently ended one"
        return last, None
    if unit_id is not None:
        return None, "no active or past rotation in that unit"
    return None, "no active rotation found"


def extend_internship(
    db: Session,
    intern_id: int,
    days: int,
    reason: str,
    notes: Optional[str] = None,
    unit_id: Optional[int] = None,
    mode: str = MODE_TOTAL,
    today=None,
) -> Intern:
    """
    Set (mode="total") or adjust (mode="delta") an intern's extension days.

    The resulting total must stay within [0, 365]; otherwise nothing is
    written. One ExtensionReason and one activity row are written per call,
    also when no rotation could be adjusted.
    """
    day = dates.reference_day(today)
    if mode not in (MODE_TOTAL, MODE_DELTA):
        raise ValidationError(f"Unknown extension mode: {mode}")
    if reason not in EXTENSION_REASONS:
        raise ValidationError(f"Invalid extension reason: {reason}")
    if isinstance(days, bool) or not isinstance(days, int):
        raise ValidationError("Extension days must be an integer")

    intern = get_intern(db, intern_id)
    if unit_id is not None:
        get_unit(db, unit_id)

    old_total = intern.extension_days or 0
    new_total = days if mode == MODE_TOTAL else old_total + days
    if not 0 <= new_total <= config.MAX_EXTENSION_DAYS:
        raise ValidationError(
            f"Extension total would be {new_total} days; it must be 0-{config.MAX_EXTENSION_DAYS}"
        )
    delta = new_total - old_total

    target, why_not = rotation_to_adjust(db, intern_id, unit_id, day)
    if target is not None and delta == 0:
        target, why_not = None, "extension total unchanged"
    if target is not None:
        new_end = dates.add_days(target.end_date, delta)
        if new_end < target.start_date:
            target, why_not = None, "rotation would end before it starts"

    if target is not None:
        old_end = target.end_date
        target.end_date = new_end
        outcome = (
            f"{target.unit_name} rotation end moved "
            f"{dates.format_day(old_end)} -> {dates.format_day(new_end)}"
        )
    else:
        outcome = f"no rotation adjusted: {why_not}"

    intern.extension_days = new_total
    db.add(ExtensionReason(intern_id=intern.id, extension_days=delta, reason=reason, notes=notes))
    sync_status(db, intern, day)
    record_activity(
        db, ACTIVITY_EXTENSION,
        f"{intern.name} extension {delta:+d} days (total {new_total}, {reason}); {outcome}",
        intern=intern, unit=target.unit if target is not None else None,
    )
    db.flush()
    logger.info("Intern %s extension %+d -> total %d (%s)", intern.id, delta, new_total, outcome)
    return intern
