from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import SettingsUpdate
from ..settings import all_settings, set_setting

router = APIRouter()


@router.get("/")
def get_settings(db: Session = Depends(get_db)):
    return all_settings(db)


@router.put("/")
def put_settings(data: SettingsUpdate, db: Session = Depends(get_db)):
    """Update any subset of settings; object-valued settings are merged field by field."""
    for key, value in data.settings.items():
        set_setting(db, key, value)
    db.commit()
    return all_settings(db)
