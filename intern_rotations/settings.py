"""Runtime scheduling rules persisted as JSON in the settings table."""
import json
import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from .config import config
from .coverage import CoverageThresholds, WorkloadThresholds
from .errors import ValidationError
from .models import Setting

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    "auto_rotation_enabled": config.AUTO_ROTATION,
    "allow_overlap": config.ALLOW_OVERLAP,
    "auto_generate_on_create": config.AUTO_GENERATE_ON_CREATE,
    "coverage": CoverageThresholds().to_dict(),
    "workload": WorkloadThresholds().to_dict(),
}

DESCRIPTIONS = {
    "auto_rotation_enabled": "Advance interns to their next unit when a rotation ends",
    "allow_overlap": "Permit manual assignments that overlap an intern's other rotations",
    "auto_generate_on_create": "Generate a full rotation plan when an intern is registered",
    "coverage": "Minimum interns per workload tier",
    "workload": "Patient-count bounds for workload tiers",
}


def get_setting(db: Session, key: str) -> Any:
    if key not in DEFAULTS:
        raise ValidationError(f"Unknown setting: {key}")
    row = db.query(Setting).filter(Setting.key == key).first()
    if row is None:
        return DEFAULTS[key]
    try:
        value = json.loads(row.value_json)
    except ValueError:
        logger.warning("Setting %s holds invalid JSON, using default", key)
        return DEFAULTS[key]
    if isinstance(DEFAULTS[key], dict) and isinstance(value, dict):
        return {**DEFAULTS[key], **value}
    return value


def set_setting(db: Session, key: str, value: Any) -> Any:
    if key not in DEFAULTS:
        raise ValidationError(f"Unknown setting: {key}")
    default = DEFAULTS[key]
    if isinstance(default, bool) and not isinstance(value, bool):
        raise ValidationError(f"{key} must be true or false")
    if isinstance(default, dict):
        if not isinstance(value, dict):
            raise ValidationError(f"{key} must be an object")
        unknown = set(value) - set(default)
        if unknown:
            raise ValidationError(f"Unknown {key} fields: {', '.join(sorted(unknown))}")
        value = {**get_setting(db, key), **value}
    row = db.query(Setting).filter(Setting.key == key).first()
    if row is None:
        row = Setting(key=key, description=DESCRIPTIONS.get(key))
        db.add(row)
    row.value_json = json.dumps(value)
    db.flush()
    return value


def all_settings(db: Session) -> Dict[str, Any]:
    return {key: get_setting(db, key) for key in DEFAULTS}


def coverage_thresholds(db: Session) -> CoverageThresholds:
    return CoverageThresholds(**get_setting(db, "coverage"))


def workload_thresholds(db: Session) -> WorkloadThresholds:
    return WorkloadThresholds(**get_setting(db, "workload"))
