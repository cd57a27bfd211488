from pydantic import BaseModel, field_validator
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from app.schemas.common import Pagination


class TankCreate(BaseModel):
    trading_point_id: int
    fuel_type_id: Optional[int] = None
    equipment_id: Optional[int] = None
    name: str
    code: str
    capacity: float
    min_volume: Optional[float] = None
    max_volume: Optional[float] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator('name', 'code')
    @classmethod
    def must_not_be_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Value must not be blank')
        return v.strip()

    @field_validator('capacity')
    @classmethod
    def capacity_positive(cls, v):
        if v <= 0:
            raise ValueError('Capacity must be greater than 0')
        return v


class TankUpdate(BaseModel):
    """Administrative edits. Capacity is fixed at provisioning and volume moves only through readings."""
    name: Optional[str] = None
    fuel_type_id: Optional[int] = None
    equipment_id: Optional[int] = None
    min_volume: Optional[float] = None
    max_volume: Optional[float] = None
    status: Optional[str] = None


class TankSnapshotResponse(BaseModel):
    id: int
    name: str
    code: str
    trading_point_id: int
    trading_point_name: Optional[str] = None
    network_id: Optional[int] = None
    fuel_type_id: Optional[int] = None
    fuel_type_name: Optional[str] = None
    fuel_type_code: Optional[str] = None
    equipment_id: Optional[int] = None
    capacity: float
    min_volume: float
    max_volume: float
    current_volume: float
    fill_level: Optional[float] = None
    temperature: Optional[float] = None
    density: Optional[float] = None
    water_level: Optional[float] = None
    last_measurement: Optional[datetime] = None
    last_calibration: Optional[date] = None
    lifecycle_status: str
    status: str
    severity: str
    alerts: List[str] = []
    alert_codes: List[str] = []
    metadata: Dict[str, Any] = {}
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StockSummary(BaseModel):
    total_tanks: int
    normal_tanks: int
    low_level_tanks: int
    high_level_tanks: int
    critical_tanks: int
    active_tanks: int
    maintenance_tanks: int
    error_tanks: int
    offline_tanks: int
    total_volume: float
    total_capacity: float
    average_fill_level: float


class TankSnapshotEnvelope(BaseModel):
    success: bool = True
    data: TankSnapshotResponse
    message: Optional[str] = None


class TankSnapshotListResponse(BaseModel):
    success: bool = True
    data: List[TankSnapshotResponse]
    pagination: Pagination
    summary: StockSummary
    filters: Dict[str, Any] = {}
