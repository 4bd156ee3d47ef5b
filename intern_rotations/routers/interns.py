from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import dates
from ..database import get_db
from ..extension import extend_internship
from ..interns import create_intern, delete_intern, intern_schedule, list_interns, update_intern
from ..models import ExtensionReason
from ..reassignment import reassignment_candidates
from ..repository import get_intern
from ..schemas import (
    ExtensionReasonOut, ExtensionRequest, InternCreate, InternOut, InternUpdate, UnitOut,
)
from ..status import sync_status

router = APIRouter()


@router.get("/", response_model=list[InternOut])
def list_all(batch: Optional[str] = None, status: Optional[str] = None, db: Session = Depends(get_db)):
    return [InternOut.model_validate(i) for i in list_interns(db, batch=batch, status=status)]


@router.get("/{intern_id}", response_model=InternOut)
def get_one(intern_id: int, db: Session = Depends(get_db)):
    return InternOut.model_validate(get_intern(db, intern_id))


@router.post("/", response_model=InternOut, status_code=201)
def create(data: InternCreate, today: Optional[str] = None, db: Session = Depends(get_db)):
    intern = create_intern(
        db,
        name=data.name,
        gender=data.gender,
        start_date=data.start_date,
        batch=data.batch,
        phone_number=data.phone_number,
        initial_unit_id=data.initial_unit_id,
        today=today,
    )
    db.commit()
    db.refresh(intern)
    return InternOut.model_validate(intern)


@router.patch("/{intern_id}", response_model=InternOut)
def update(intern_id: int, data: InternUpdate, db: Session = Depends(get_db)):
    intern = update_intern(db, intern_id, data.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(intern)
    return InternOut.model_validate(intern)


@router.delete("/{intern_id}")
def delete(intern_id: int, db: Session = Depends(get_db)):
    delete_intern(db, intern_id)
    db.commit()
    return {"ok": True}


@router.get("/{intern_id}/schedule")
def schedule(intern_id: int, today: Optional[str] = None, db: Session = Depends(get_db)):
    """Completed / current / upcoming rotations; overdue auto-advances are applied first."""
    result = intern_schedule(db, intern_id, today=today)
    db.commit()
    return result.to_dict()


@router.post("/{intern_id}/extend", response_model=InternOut)
def extend(intern_id: int, data: ExtensionRequest, today: Optional[str] = None, db: Session = Depends(get_db)):
    intern = extend_internship(
        db, intern_id, data.days, data.reason,
        notes=data.notes, unit_id=data.unit_id, mode=data.mode, today=today,
    )
    db.commit()
    db.refresh(intern)
    return InternOut.model_validate(intern)


@router.post("/{intern_id}/sync-status")
def sync(intern_id: int, today: Optional[str] = None, db: Session = Depends(get_db)):
    intern = get_intern(db, intern_id)
    changed = sync_status(db, intern, dates.reference_day(today))
    db.commit()
    return {"id": intern.id, "status": intern.status, "changed": changed}


@router.get("/{intern_id}/reassignment-candidates", response_model=list[UnitOut])
def candidates(intern_id: int, today: Optional[str] = None, db: Session = Depends(get_db)):
    return [UnitOut.model_validate(u) for u in reassignment_candidates(db, intern_id, today=today)]


@router.get("/{intern_id}/extensions", response_model=list[ExtensionReasonOut])
def extensions(intern_id: int, db: Session = Depends(get_db)):
    get_intern(db, intern_id)
    rows = (
        db.query(ExtensionReason)
        .filter(ExtensionReason.intern_id == intern_id)
        .order_by(ExtensionReason.created_at.desc(), ExtensionReason.id.desc())
        .all()
    )
    return [ExtensionReasonOut.model_validate(r) for r in rows]
