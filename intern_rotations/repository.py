"""Lookups shared by the services."""
from typing import List

from sqlalchemy.orm import Session, joinedload

from .errors import NotFoundError
from .models import Intern, Unit, Rotation


def get_intern(db: Session, intern_id: int, for_update: bool = False) -> Intern:
    q = db.query(Intern).filter(Intern.id == intern_id)
    if for_update:
        q = q.with_for_update()
    intern = q.first()
    if not intern:
        raise NotFoundError("Intern", intern_id)
    return intern


def get_unit(db: Session, unit_id: int) -> Unit:
    unit = db.query(Unit).filter(Unit.id == unit_id).first()
    if not unit:
        raise NotFoundError("Unit", unit_id)
    return unit


def get_rotation(db: Session, rotation_id: int) -> Rotation:
    rotation = db.query(Rotation).filter(Rotation.id == rotation_id).first()
    if not rotation:
        raise NotFoundError("Rotation", rotation_id)
    return rotation


def ordered_units(db: Session) -> List[Unit]:
    """The unit catalog in round-robin order."""
    return db.query(Unit).order_by(Unit.position, Unit.id).all()


def intern_rotations(db: Session, intern_id: int) -> List[Rotation]:
    return (
        db.query(Rotation)
        .options(joinedload(Rotation.unit))
        .filter(Rotation.intern_id == intern_id)
        .order_by(Rotation.start_date, Rotation.id)
        .all()
    )
