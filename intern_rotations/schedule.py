"""
Rotation schedule builder.

Splits one intern's persisted rotations into completed / current / upcoming
against the current unit catalog. Upcoming entries are never stored: they
are projected from catalog order on every call, so reordering the catalog
re-sequences an intern's remaining path without touching historical rows.

Inputs are plain dicts (see rotation_row / unit_row) and `today` is always
passed in, which keeps build_schedule free of I/O and of the wall clock.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Set

from .dates import parse_day, format_day


@dataclass
class Schedule:
    intern_id: int
    completed: List[Dict[str, Any]] = field(default_factory=list)
    current: Optional[Dict[str, Any]] = None
    upcoming: List[Dict[str, Any]] = field(default_factory=list)
    rotations: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def visited_unit_ids(self) -> Set[int]:
        """Units the intern has finished or is in today."""
        ids = {r["unit_id"] for r in self.completed if r.get("unit_id") is not None}
        if self.current and self.current.get("unit_id") is not None:
            ids.add(self.current["unit_id"])
        return ids

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intern_id": self.intern_id,
            "completed": [_serialize(r) for r in self.completed],
            "current": _serialize(self.current) if self.current else None,
            "upcoming": [_serialize(r) for r in self.upcoming],
            "rotations": [_serialize(r) for r in self.rotations],
        }


def _serialize(row: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(row)
    for key in ("start_date", "end_date"):
        if isinstance(out.get(key), date):
            out[key] = format_day(out[key])
    return out


def deleted_unit_name(unit_id) -> str:
    return f"Deleted Unit ({unit_id})" if unit_id else "Deleted Unit"


def rotation_row(rotation) -> Dict[str, Any]:
    """Flatten a Rotation model (unit name included) into a builder input."""
    return {
        "id": rotation.id,
        "intern_id": rotation.intern_id,
        "unit_id": rotation.unit_id,
        "unit_name": rotation.unit_name,
        "start_date": rotation.start_date,
        "end_date": rotation.end_date,
        "is_manual_assignment": bool(rotation.is_manual_assignment),
    }


def unit_row(unit) -> Dict[str, Any]:
    return {
        "id": unit.id,
        "name": unit.name,
        "duration_days": unit.duration_days,
        "workload": unit.workload,
        "position": unit.position,
    }


def _start_key(row: Dict[str, Any]) -> date:
    return parse_day(row.get("start_date")) or date.min


def _with_unit_name(row: Dict[str, Any]) -> Dict[str, Any]:
    if row.get("unit_name"):
        return dict(row)
    return {**row, "unit_name": deleted_unit_name(row.get("unit_id"))}


def _is_completed(row: Dict[str, Any], today: date) -> bool:
    end = parse_day(row.get("end_date"))
    return end is not None and end < today


def _is_current(row: Dict[str, Any], today: date) -> bool:
    start = parse_day(row.get("start_date"))
    if start is None or start > today:
        return False
    if row.get("end_date") in (None, ""):
        return True
    end = parse_day(row.get("end_date"))
    return end is not None and end >= today


def _is_future(row: Dict[str, Any], today: date) -> bool:
    start = parse_day(row.get("start_date"))
    return start is not None and start > today


def order_catalog(units: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Catalog order: by position; ties and missing positions keep the caller's order."""
    valid = [u for u in units if u and u.get("id") is not None]
    return sorted(valid, key=lambda u: u.get("position") or 0)


def pick_current(rows: Iterable[Dict[str, Any]], today: date) -> Optional[Dict[str, Any]]:
    """Among rows active today, the latest start wins; equal starts go to the highest id."""
    candidates = [r for r in rows if _is_current(r, today)]
    if not candidates:
        return None
    return max(candidates, key=lambda r: (_start_key(r), r.get("id") or 0))


def build_schedule(
    intern_id: int,
    rotations: Iterable[Dict[str, Any]],
    ordered_units: Iterable[Dict[str, Any]],
    today,
) -> Schedule:
    day = parse_day(today)
    if day is None:
        raise ValueError(f"Invalid reference day: {today!r}")

    normalized = sorted(
        (_with_unit_name(r) for r in (rotations or [])),
        key=lambda r: (_start_key(r), r.get("id") or 0),
    )

    completed = [r for r in normalized if _is_completed(r, day)]
    current = pick_current(normalized, day)

    excluded = {r["unit_id"] for r in completed if r.get("unit_id") is not None}
    if current is not None and current.get("unit_id") is not None:
        excluded.add(current["unit_id"])

    future_by_unit: Dict[int, Dict[str, Any]] = {}
    for r in normalized:
        if _is_future(r, day) and r.get("unit_id") is not None:
            future_by_unit.setdefault(r["unit_id"], r)

    upcoming = []
    for unit in order_catalog(ordered_units or []):
        if unit["id"] in excluded:
            continue
        existing = future_by_unit.get(unit["id"])
        upcoming.append({
            "id": existing["id"] if existing else f"upcoming-{intern_id}-{unit['id']}",
            "intern_id": intern_id,
            "unit_id": unit["id"],
            "unit_name": unit.get("name"),
            "duration_days": unit.get("duration_days"),
            "workload": unit.get("workload"),
            "position": unit.get("position"),
            "start_date": existing["start_date"] if existing else None,
            "end_date": existing["end_date"] if existing else None,
            "is_manual_assignment": bool(existing.get("is_manual_assignment")) if existing else False,
            "is_dynamic_upcoming": True,
        })

    return Schedule(
        intern_id=intern_id,
        completed=completed,
        current=current,
        upcoming=upcoming,
        rotations=normalized,
    )
