"""Pydantic schemas for API."""
from datetime import date, datetime
from typing import Annotated, Optional, List, Dict, Any
from pydantic import BaseModel, BeforeValidator

from .dates import parse_day


def _calendar_day(value):
    """Accept YYYY-MM-DD (timestamps are cut to their date part)."""
    if value is None:
        return None
    day = parse_day(value)
    if day is None:
        raise ValueError("must be a date in YYYY-MM-DD format")
    return day


CalendarDay = Annotated[date, BeforeValidator(_calendar_day)]


class InternBase(BaseModel):
    name: str
    gender: str
    batch: Optional[str] = None
    phone_number: Optional[str] = None


class InternCreate(InternBase):
    start_date: CalendarDay
    initial_unit_id: Optional[int] = None


class InternUpdate(BaseModel):
    name: Optional[str] = None
    gender: Optional[str] = None
    batch: Optional[str] = None
    start_date: Optional[CalendarDay] = None
    phone_number: Optional[str] = None
    status: Optional[str] = None


class InternOut(InternBase):
    id: int
    batch: str
    start_date: date
    status: str
    extension_days: int

    class Config:
        from_attributes = True


class ExtensionRequest(BaseModel):
    days: int
    reason: str
    notes: Optional[str] = None
    unit_id: Optional[int] = None
    mode: str = "total"  # "total" sets the running total, "delta" adds to it


class ExtensionReasonOut(BaseModel):
    id: int
    intern_id: int
    extension_days: int
    reason: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UnitBase(BaseModel):
    name: str
    duration_days: int
    workload: Optional[str] = None
    patient_count: int = 0
    description: Optional[str] = None


class UnitCreate(UnitBase):
    pass


class UnitUpdate(BaseModel):
    name: Optional[str] = None
    duration_days: Optional[int] = None
    workload: Optional[str] = None
    patient_count: Optional[int] = None
    description: Optional[str] = None


class UnitOut(UnitBase):
    id: int
    workload: str
    position: int

    class Config:
        from_attributes = True


class UnitCoverageOut(UnitOut):
    current_interns: int = 0
    batch_a: int = 0
    batch_b: int = 0
    intern_names: List[str] = []
    coverage_status: str


class ReorderRequest(BaseModel):
    unit_ids: List[int]


class PatientCountRequest(BaseModel):
    patient_count: int
    notes: Optional[str] = None


class WorkloadHistoryOut(BaseModel):
    id: int
    unit_id: int
    workload: str
    week_start_date: date
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class RotationCreate(BaseModel):
    intern_id: int
    unit_id: int
    start_date: CalendarDay
    end_date: Optional[CalendarDay] = None  # defaults to the unit's duration
    allow_overlap: Optional[bool] = None


class RotationUpdate(BaseModel):
    unit_id: Optional[int] = None
    start_date: Optional[CalendarDay] = None
    end_date: Optional[CalendarDay] = None
    allow_overlap: Optional[bool] = None


class ReassignRequest(BaseModel):
    unit_id: int
    start_date: Optional[CalendarDay] = None
    allow_overlap: Optional[bool] = None


class RotationOut(BaseModel):
    id: int
    intern_id: int
    unit_id: int
    unit_name: Optional[str] = None
    start_date: date
    end_date: date
    is_manual_assignment: bool = False

    class Config:
        from_attributes = True


class GenerateRequest(BaseModel):
    start_date: Optional[CalendarDay] = None


class ActivityOut(BaseModel):
    id: int
    activity_type: str
    intern_id: Optional[int] = None
    intern_name: Optional[str] = None
    unit_id: Optional[int] = None
    unit_name: Optional[str] = None
    details: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SettingsUpdate(BaseModel):
    settings: Dict[str, Any]
