from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class ScopedFilter(BaseModel):
    """Restriction fields filled in from the caller's access scope."""
    trading_point_ids: Optional[List[int]] = None
    network_id: Optional[int] = None
    # Caller can see nothing at all
    deny_all: bool = False


class StockFilter(ScopedFilter):
    fuel_type_id: Optional[int] = None
    trading_point_id: Optional[int] = None
    tank_id: Optional[int] = None
    lifecycle_status: Optional[str] = None  # operator-set: active/maintenance/error/offline
    status: Optional[str] = None  # derived: normal/low_level/high_level/critical/...
    has_alerts: bool = False

    @property
    def needs_derivation(self) -> bool:
        return bool(self.status or self.has_alerts)


class AlertFilter(ScopedFilter):
    severity: Optional[str] = None
    trading_point_id: Optional[int] = None


class HistoryFilter(ScopedFilter):
    tank_id: Optional[int] = None
    tank_ids: Optional[List[int]] = None
    fuel_type_id: Optional[int] = None
    trading_point_id: Optional[int] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


class EventFilter(ScopedFilter):
    tank_id: Optional[int] = None
    tank_ids: Optional[List[int]] = None
    event_type: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
