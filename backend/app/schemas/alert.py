from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from app.schemas.common import Pagination


class AlertItem(BaseModel):
    tank_id: int
    tank_name: str
    tank_code: str
    trading_point_id: int
    trading_point_name: Optional[str] = None
    fuel_type_id: Optional[int] = None
    fuel_type_name: Optional[str] = None
    current_volume: float
    capacity: float
    fill_level: Optional[float] = None
    status: str
    severity: str
    alerts: List[str]
    alert_codes: List[str]
    last_measurement: Optional[datetime] = None


class AlertSummary(BaseModel):
    total: int
    critical: int
    high: int
    medium: int
    low: int


class AlertListResponse(BaseModel):
    success: bool = True
    data: List[AlertItem]
    summary: AlertSummary
    pagination: Optional[Pagination] = None
