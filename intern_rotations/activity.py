"""Append-only activity trail for every mutation the engine performs."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from .errors import ValidationError
from .models import ActivityLog, ACTIVITY_TYPES, Intern, Unit

logger = logging.getLogger(__name__)


def record_activity(
    db: Session,
    activity_type: str,
    details: str,
    intern: Optional[Intern] = None,
    unit: Optional[Unit] = None,
) -> ActivityLog:
    """Add an activity row to the session; the caller's transaction commits it."""
    if activity_type not in ACTIVITY_TYPES:
        raise ValidationError(f"Unknown activity type: {activity_type}")
    entry = ActivityLog(
        activity_type=activity_type,
        intern_id=intern.id if intern else None,
        intern_name=intern.name if intern else None,
        unit_id=unit.id if unit else None,
        unit_name=unit.name if unit else None,
        details=details,
    )
    db.add(entry)
    logger.debug("activity %s: %s", activity_type, details)
    return entry


def recent_activity(
    db: Session,
    limit: int = 10,
    intern_id: Optional[int] = None,
    activity_type: Optional[str] = None,
) -> List[ActivityLog]:
    q = db.query(ActivityLog)
    if intern_id is not None:
        q = q.filter(ActivityLog.intern_id == intern_id)
    if activity_type:
        q = q.filter(ActivityLog.activity_type == activity_type)
    return q.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit).all()
