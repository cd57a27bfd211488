from pydantic import BaseModel
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.models.fuel_measurement import MeasurementMethod
from app.models.tank import CalibrationMethod
from app.schemas.common import Pagination


class MeasurementCreate(BaseModel):
    # Optional here so a missing volume is reported by the recorder like a negative one
    volume: Optional[float] = None
    temperature: Optional[float] = None
    density: Optional[float] = None
    water_level: Optional[float] = None
    measurement_method: MeasurementMethod = MeasurementMethod.MANUAL
    notes: Optional[str] = None


class CalibrationCreate(BaseModel):
    actual_volume: Optional[float] = None
    temperature: Optional[float] = None
    density: Optional[float] = None
    water_level: Optional[float] = None
    calibration_method: CalibrationMethod = CalibrationMethod.MANUAL
    notes: Optional[str] = None


class MeasurementResponse(BaseModel):
    id: int
    tank_id: int
    tank_name: Optional[str] = None
    trading_point_id: Optional[int] = None
    fuel_type_id: Optional[int] = None
    fuel_type_name: Optional[str] = None
    volume: float
    temperature: Optional[float] = None
    density: Optional[float] = None
    water_level: Optional[float] = None
    measurement_method: str
    measured_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class MeasurementHistoryResponse(BaseModel):
    success: bool = True
    data: List[MeasurementResponse]
    pagination: Pagination
    filters: Dict[str, Any] = {}
