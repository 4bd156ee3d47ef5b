"""Intern status derivation: Active / Extended / Completed."""
import logging

from sqlalchemy.orm import Session

from . import dates
from .activity import record_activity
from .config import config
from .models import (
    Intern, STATUS_ACTIVE, STATUS_EXTENDED, STATUS_COMPLETED, ACTIVITY_STATUS_CHANGE,
)

logger = logging.getLogger(__name__)


def internship_days(intern: Intern) -> int:
    return config.INTERNSHIP_DAYS + (intern.extension_days or 0)


def internship_end(intern: Intern):
    """Last scheduled day of the internship, extensions included."""
    return dates.end_for_duration(intern.start_date, internship_days(intern))


def days_elapsed(intern: Intern, today) -> int:
    """Whole days served before `today` (0 on the start day)."""
    start, day = dates.parse_day(intern.start_date), dates.parse_day(today)
    if start is None or day is None or day < start:
        return 0
    return (day - start).days


def derive_status(intern: Intern, today) -> str:
    if days_elapsed(intern, today) >= internship_days(intern):
        return STATUS_COMPLETED
    if (intern.extension_days or 0) > 0:
        return STATUS_EXTENDED
    return STATUS_ACTIVE


def sync_status(db: Session, intern: Intern, today) -> bool:
    """Store the derived status; returns True when it changed."""
    new_status = derive_status(intern, today)
    if new_status == intern.status:
        return False
    old_status = intern.status
    intern.status = new_status
    record_activity(
        db, ACTIVITY_STATUS_CHANGE, f"{intern.name}: {old_status} -> {new_status}", intern=intern,
    )
    logger.info("Intern %s status %s -> %s", intern.id, old_status, new_status)
    return True
