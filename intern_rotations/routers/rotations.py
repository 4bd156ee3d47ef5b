from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from .. import dates
from ..advance import advance_all
from ..database import get_db
from ..generation import generate_rotations
from ..models import Rotation
from ..reassignment import create_manual_rotation, delete_rotation, reassign_rotation, update_rotation
from ..schemas import GenerateRequest, ReassignRequest, RotationCreate, RotationOut, RotationUpdate
from ..units import list_units_with_coverage

router = APIRouter()


@router.get("/", response_model=list[RotationOut])
def list_rotations(
    intern_id: Optional[int] = None,
    unit_id: Optional[int] = None,
    active_on: Optional[str] = None,
    db: Session = Depends(get_db),
):
    q = db.query(Rotation).options(joinedload(Rotation.unit))
    if intern_id is not None:
        q = q.filter(Rotation.intern_id == intern_id)
    if unit_id is not None:
        q = q.filter(Rotation.unit_id == unit_id)
    day = dates.parse_day(active_on)
    if day is not None:
        q = q.filter(Rotation.start_date <= day, Rotation.end_date >= day)
    rows = q.order_by(Rotation.start_date, Rotation.id).all()
    return [RotationOut.model_validate(r) for r in rows]


def _with_interns(rows):
    out = []
    for r in rows:
        item = RotationOut.model_validate(r).model_dump(mode="json")
        item["intern_name"] = r.intern.name
        item["batch"] = r.intern.batch
        out.append(item)
    return out


@router.get("/current")
def current(today: Optional[str] = None, db: Session = Depends(get_db)):
    """Rotations running today plus per-unit batch counts."""
    day = dates.reference_day(today)
    rows = (
        db.query(Rotation)
        .options(joinedload(Rotation.unit), joinedload(Rotation.intern))
        .filter(Rotation.start_date <= day, Rotation.end_date >= day)
        .order_by(Rotation.unit_id, Rotation.intern_id)
        .all()
    )
    return {
        "date": dates.format_day(day),
        "rotations": _with_interns(rows),
        "units": [
            {
                "unit_id": u["id"],
                "unit_name": u["name"],
                "workload": u["workload"],
                "batch_a": u["batch_a"],
                "batch_b": u["batch_b"],
                "total": u["current_interns"],
                "coverage_status": u["coverage_status"],
            }
            for u in list_units_with_coverage(db, today=day)
        ],
    }


@router.post("/", response_model=RotationOut, status_code=201)
def create(data: RotationCreate, db: Session = Depends(get_db)):
    rotation = create_manual_rotation(
        db, data.intern_id, data.unit_id, data.start_date,
        end_date=data.end_date, allow_overlap=data.allow_overlap,
    )
    db.commit()
    db.refresh(rotation)
    return RotationOut.model_validate(rotation)


@router.patch("/{rotation_id}", response_model=RotationOut)
def update(rotation_id: int, data: RotationUpdate, db: Session = Depends(get_db)):
    rotation = update_rotation(
        db, rotation_id,
        unit_id=data.unit_id, start_date=data.start_date, end_date=data.end_date,
        allow_overlap=data.allow_overlap,
    )
    db.commit()
    db.refresh(rotation)
    return RotationOut.model_validate(rotation)


@router.post("/{rotation_id}/reassign", response_model=RotationOut)
def reassign(rotation_id: int, data: ReassignRequest, db: Session = Depends(get_db)):
    rotation = reassign_rotation(
        db, rotation_id, data.unit_id, start_date=data.start_date, allow_overlap=data.allow_overlap,
    )
    db.commit()
    db.refresh(rotation)
    return RotationOut.model_validate(rotation)


@router.delete("/{rotation_id}")
def delete(rotation_id: int, db: Session = Depends(get_db)):
    delete_rotation(db, rotation_id)
    db.commit()
    return {"ok": True}


@router.post("/generate")
def generate(data: GenerateRequest, db: Session = Depends(get_db)):
    """Rebuild automatic rotations from start_date (default today); manual ones are kept."""
    summary = generate_rotations(db, start=data.start_date)
    db.commit()
    return summary


@router.post("/advance")
def advance(today: Optional[str] = None, db: Session = Depends(get_db)):
    created = advance_all(db, today=today)
    db.commit()
    return {"advanced": {str(k): v for k, v in created.items()}, "rotations": sum(created.values())}
