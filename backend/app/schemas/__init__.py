from app.schemas.common import Pagination
from app.schemas.filters import StockFilter, AlertFilter, HistoryFilter, EventFilter
from app.schemas.tank import (
    TankCreate, TankUpdate, TankSnapshotResponse, StockSummary,
    TankSnapshotEnvelope, TankSnapshotListResponse,
)
from app.schemas.measurement import (
    MeasurementCreate, CalibrationCreate, MeasurementResponse, MeasurementHistoryResponse,
)
from app.schemas.tank_event import TankEventCreate, TankEventResponse, TankEventEnvelope, TankEventListResponse
from app.schemas.alert import AlertItem, AlertSummary, AlertListResponse

__all__ = [
    "Pagination",
    "StockFilter", "AlertFilter", "HistoryFilter", "EventFilter",
    "TankCreate", "TankUpdate", "TankSnapshotResponse", "StockSummary",
    "TankSnapshotEnvelope", "TankSnapshotListResponse",
    "MeasurementCreate", "CalibrationCreate", "MeasurementResponse", "MeasurementHistoryResponse",
    "TankEventCreate", "TankEventResponse", "TankEventEnvelope", "TankEventListResponse",
    "AlertItem", "AlertSummary", "AlertListResponse",
]
