from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..activity import recent_activity
from ..database import get_db
from ..schemas import ActivityOut

router = APIRouter()


@router.get("/recent", response_model=list[ActivityOut])
def recent(
    limit: int = 10,
    intern_id: Optional[int] = None,
    activity_type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    rows = recent_activity(db, limit=min(max(limit, 1), 200), intern_id=intern_id, activity_type=activity_type)
    return [ActivityOut.model_validate(r) for r in rows]
