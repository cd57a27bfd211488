from datetime import date
from typing import Any, Dict, List, Optional
import logging

import numpy as np

from app.errors import ValidationError, AccessDeniedError
from app.models import Tank, TankStatus
from app.schemas.filters import StockFilter
from app.schemas.tank import TankCreate, TankUpdate
from app.services.access import AccessScope
from app.services.clock import Clock, utc_now, station_date
from app.services.store import TankStore, paginate_list
from app.services.thresholds import FillStatus, StatusResult, derive_status

logger = logging.getLogger(__name__)

LIFECYCLE_VALUES = [s.value for s in TankStatus]
FILL_STATUS_VALUES = [s.value for s in FillStatus]


def build_snapshot_view(tank: Tank, today: date, result: Optional[StatusResult] = None) -> Dict[str, Any]:
    """Flatten a tank into its API shape, with derived status, alerts and lookup names."""
    result = result or derive_status(tank, today)
    point = tank.trading_point
    fuel_type = tank.fuel_type
    return {
        "id": tank.id,
        "name": tank.name,
        "code": tank.code,
        "trading_point_id": tank.trading_point_id,
        "trading_point_name": point.name if point else None,
        "network_id": point.network_id if point else None,
        "fuel_type_id": tank.fuel_type_id,
        "fuel_type_name": fuel_type.name if fuel_type else None,
        "fuel_type_code": fuel_type.code if fuel_type else None,
        "equipment_id": tank.equipment_id,
        "capacity": tank.capacity,
        "min_volume": tank.min_volume or 0.0,
        "max_volume": tank.effective_max_volume,
        "current_volume": tank.current_volume or 0.0,
        "fill_level": round(result.fill_level, 2) if result.fill_level is not None else None,
        "temperature": tank.temperature,
        "density": tank.density,
        "water_level": tank.water_level,
        "last_measurement": tank.last_measurement,
        "last_calibration": tank.last_calibration,
        "lifecycle_status": tank.status,
        "status": result.status.value,
        "severity": result.severity,
        "alerts": result.messages,
        "alert_codes": result.codes,
        "metadata": dict(tank.meta or {}),
        "created_at": tank.created_at,
        "updated_at": tank.updated_at,
    }


def summarize(views: List[Dict[str, Any]]) -> Dict[str, Any]:
    def count(key, value):
        return sum(1 for v in views if v[key] == value)

    fill_levels = [v["fill_level"] for v in views if v["fill_level"] is not None]
    return {
        "total_tanks": len(views),
        "normal_tanks": count("status", FillStatus.NORMAL.value),
        "low_level_tanks": count("status", FillStatus.LOW_LEVEL.value),
        "high_level_tanks": count("status", FillStatus.HIGH_LEVEL.value),
        "critical_tanks": count("status", FillStatus.CRITICAL.value),
        "active_tanks": count("lifecycle_status", TankStatus.ACTIVE.value),
        "maintenance_tanks": count("lifecycle_status", TankStatus.MAINTENANCE.value),
        "error_tanks": count("lifecycle_status", TankStatus.ERROR.value),
        "offline_tanks": count("lifecycle_status", TankStatus.OFFLINE.value),
        "total_volume": round(sum(v["current_volume"] for v in views), 2),
        "total_capacity": round(sum(v["capacity"] for v in views), 2),
        "average_fill_level": round(float(np.mean(fill_levels)), 2) if fill_levels else 0.0,
    }


def validate_bounds(min_volume: float, max_volume: float, capacity: float) -> None:
    if min_volume < 0:
        raise ValidationError("min_volume cannot be negative", field="min_volume")
    if max_volume > capacity:
        raise ValidationError("max_volume cannot exceed capacity", field="max_volume", capacity=capacity)
    if min_volume > max_volume:
        raise ValidationError("min_volume cannot exceed max_volume", field="min_volume")


def validate_lifecycle_status(value: str) -> None:
    if value not in LIFECYCLE_VALUES:
        raise ValidationError(f"Invalid tank status '{value}'", field="status", valid_values=LIFECYCLE_VALUES)


class SnapshotService:
    """Read side of the tank snapshots plus provisioning and administrative edits."""

    def __init__(self, store: TankStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    def today(self) -> date:
        return station_date(self.clock())

    def view(self, tank: Tank) -> Dict[str, Any]:
        return build_snapshot_view(tank, self.today())

    def list_snapshots(self, filters: StockFilter, page: int, limit: int) -> Dict[str, Any]:
        if filters.status and filters.status not in FILL_STATUS_VALUES:
            raise ValidationError(f"Invalid status '{filters.status}'", field="status", valid_values=FILL_STATUS_VALUES)
        if filters.lifecycle_status:
            validate_lifecycle_status(filters.lifecycle_status)

        today = self.today()

        if filters.needs_derivation:
            # Derived fields are not columns; filter in memory, then page
            derived = [(tank, derive_status(tank, today)) for tank in self.store.find_all(filters)]
            if filters.status:
                derived = [(t, r) for t, r in derived if r.status.value == filters.status]
            if filters.has_alerts:
                derived = [(t, r) for t, r in derived if r.alerts]
            page_items, pagination = paginate_list(derived, page, limit)
        else:
            tanks, pagination = self.store.find_all_with_filters(filters, page, limit)
            page_items = [(tank, derive_status(tank, today)) for tank in tanks]

        data = [build_snapshot_view(tank, today, result) for tank, result in page_items]
        return {"data": data, "pagination": pagination, "summary": summarize(data)}

    def get_snapshot(self, tank_id: int, scope: AccessScope) -> Dict[str, Any]:
        tank = self.store.get(tank_id)
        scope.ensure_access(tank)
        return self.view(tank)

    def provision(self, data: TankCreate, scope: AccessScope) -> Dict[str, Any]:
        """Create a tank: capacity fixed from here on, volume starts at zero."""
        point = self.store.get_trading_point(data.trading_point_id)
        if not scope.can_access_point(point.id, point.network_id):
            raise AccessDeniedError("Access denied to this trading point")

        if data.fuel_type_id is not None:
            self.store.get_fuel_type(data.fuel_type_id)

        min_volume = data.min_volume if data.min_volume is not None else 0.0
        max_volume = data.max_volume if data.max_volume is not None else data.capacity
        validate_bounds(min_volume, max_volume, data.capacity)

        code = data.code.upper()
        if self.store.code_exists(point.id, code):
            raise ValidationError("Tank code already exists for this trading point", field="code")

        now = self.clock()
        tank = Tank(
            trading_point_id=point.id,
            fuel_type_id=data.fuel_type_id,
            equipment_id=data.equipment_id,
            name=data.name,
            code=code,
            capacity=data.capacity,
            min_volume=min_volume,
            max_volume=max_volume,
            current_volume=0.0,
            status=TankStatus.ACTIVE.value,
            meta=data.metadata or {},
            created_at=now,
            updated_at=now,
        )
        self.store.create(tank)

        logger.info(f"Provisioned tank {tank.id} ({code}) at trading point {point.id}, capacity {data.capacity}L")
        return self.view(tank)

    def update_settings(self, tank_id: int, data: TankUpdate, scope: AccessScope) -> Dict[str, Any]:
        tank = self.store.get(tank_id)
        scope.ensure_access(tank)

        updates = data.model_dump(exclude_unset=True)

        if "status" in updates:
            validate_lifecycle_status(updates["status"])
        if "name" in updates:
            name = (updates["name"] or "").strip()
            if not name:
                raise ValidationError("Name must not be blank", field="name")
            updates["name"] = name
        if updates.get("fuel_type_id") is not None:
            self.store.get_fuel_type(updates["fuel_type_id"])

        min_volume = updates.get("min_volume", tank.min_volume)
        max_volume = updates.get("max_volume", tank.max_volume)
        min_volume = min_volume if min_volume is not None else 0.0
        max_volume = max_volume if max_volume is not None else tank.capacity
        validate_bounds(min_volume, max_volume, tank.capacity)
        updates["min_volume"] = min_volume
        updates["max_volume"] = max_volume

        for field, value in updates.items():
            setattr(tank, field, value)
        tank.updated_at = self.clock()

        with self.store.transaction():
            self.store.add(tank)
        self.store.refresh(tank)

        logger.info(f"Updated settings of tank {tank.id}: {sorted(updates)}")
        return self.view(tank)
