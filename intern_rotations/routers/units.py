from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..repository import get_unit
from ..schemas import (
    PatientCountRequest, ReorderRequest, UnitCoverageOut, UnitCreate, UnitOut, UnitUpdate,
    WorkloadHistoryOut,
)
from ..units import (
    create_unit, delete_unit, list_units_with_coverage, reorder_units, seed_default_units,
    update_patient_count, update_unit, workload_history,
)

router = APIRouter()


@router.get("/", response_model=list[UnitCoverageOut])
def list_units(today: Optional[str] = None, db: Session = Depends(get_db)):
    """Catalog in rotation order with today's interns and coverage status."""
    return [UnitCoverageOut.model_validate(u) for u in list_units_with_coverage(db, today=today)]


# Declared before /{unit_id} routes so the literal paths win
@router.post("/reorder", response_model=list[UnitOut])
def reorder(data: ReorderRequest, db: Session = Depends(get_db)):
    units = reorder_units(db, data.unit_ids)
    db.commit()
    return [UnitOut.model_validate(u) for u in units]


@router.post("/seed-defaults")
def seed_defaults(db: Session = Depends(get_db)):
    created = seed_default_units(db)
    db.commit()
    return {"created": len(created), "names": [u.name for u in created]}


@router.get("/{unit_id}", response_model=UnitOut)
def get_one(unit_id: int, db: Session = Depends(get_db)):
    return UnitOut.model_validate(get_unit(db, unit_id))


@router.post("/", response_model=UnitOut, status_code=201)
def create(data: UnitCreate, db: Session = Depends(get_db)):
    unit = create_unit(
        db,
        name=data.name,
        duration_days=data.duration_days,
        workload=data.workload,
        patient_count=data.patient_count,
        description=data.description,
    )
    db.commit()
    db.refresh(unit)
    return UnitOut.model_validate(unit)


@router.patch("/{unit_id}", response_model=UnitOut)
def update(unit_id: int, data: UnitUpdate, db: Session = Depends(get_db)):
    unit = update_unit(db, unit_id, data.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(unit)
    return UnitOut.model_validate(unit)


@router.delete("/{unit_id}")
def delete(unit_id: int, today: Optional[str] = None, db: Session = Depends(get_db)):
    delete_unit(db, unit_id, today=today)
    db.commit()
    return {"ok": True}


@router.post("/{unit_id}/patient-count", response_model=UnitOut)
def patient_count(unit_id: int, data: PatientCountRequest, db: Session = Depends(get_db)):
    unit = update_patient_count(db, unit_id, data.patient_count, notes=data.notes)
    db.commit()
    db.refresh(unit)
    return UnitOut.model_validate(unit)


@router.get("/{unit_id}/workload-history", response_model=list[WorkloadHistoryOut])
def history(unit_id: int, limit: int = 52, db: Session = Depends(get_db)):
    return [WorkloadHistoryOut.model_validate(h) for h in workload_history(db, unit_id, limit=limit)]
