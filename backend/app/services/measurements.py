"""
Measurement recorder.

Applies a raw tank reading to the snapshot and appends it to the
measurement history in one transaction.
"""
from typing import Any, Dict, Optional, Type
import enum
import logging
import math

from app.errors import ValidationError, CapacityExceededError
from app.models import Tank, FuelMeasurement, MeasurementMethod
from app.schemas.filters import HistoryFilter
from app.services.access import AccessScope
from app.services.clock import Clock, utc_now, station_date
from app.services.snapshots import build_snapshot_view
from app.services.store import TankStore, paginate

logger = logging.getLogger(__name__)


def validate_volume(volume: Optional[float], capacity: float, field: str = "volume") -> float:
    """Volume must be present, finite, non-negative and within the tank's capacity."""
    if volume is None:
        raise ValidationError(f"{field} is required", field=field)
    if not math.isfinite(volume):
        raise ValidationError(f"{field} must be a finite number", field=field)
    if volume < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    if volume > capacity:
        raise CapacityExceededError(volume, capacity, field=field)
    return volume


def validate_readings(**readings: Optional[float]) -> None:
    for field, value in readings.items():
        if value is not None and not math.isfinite(value):
            raise ValidationError(f"{field} must be a finite number", field=field)


def validate_method(value, methods: Type[enum.Enum], field: str) -> str:
    """Coerce a method name to its enum value, or reject it with the accepted set."""
    try:
        return methods(value).value
    except ValueError:
        valid_values = [m.value for m in methods]
        raise ValidationError(f"Invalid {field} '{value}'", field=field, valid_values=valid_values)


def apply_readings(tank: Tank, temperature=None, density=None, water_level=None) -> None:
    """Copy optional readings onto the snapshot; omitted ones keep their previous value."""
    if temperature is not None:
        tank.temperature = temperature
    if density is not None:
        tank.density = density
    if water_level is not None:
        tank.water_level = water_level


def measurement_view(measurement: FuelMeasurement) -> Dict[str, Any]:
    tank = measurement.tank
    fuel_type = measurement.fuel_type
    return {
        "id": measurement.id,
        "tank_id": measurement.tank_id,
        "tank_name": tank.name if tank else None,
        "trading_point_id": tank.trading_point_id if tank else None,
        "fuel_type_id": measurement.fuel_type_id,
        "fuel_type_name": fuel_type.name if fuel_type else None,
        "volume": measurement.volume,
        "temperature": measurement.temperature,
        "density": measurement.density,
        "water_level": measurement.water_level,
        "measurement_method": measurement.measurement_method,
        "measured_by": measurement.measured_by,
        "notes": measurement.notes,
        "created_at": measurement.created_at,
    }


class MeasurementRecorder:
    def __init__(self, store: TankStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    def record(
        self,
        tank_id: int,
        volume: Optional[float],
        scope: AccessScope,
        temperature: Optional[float] = None,
        density: Optional[float] = None,
        water_level: Optional[float] = None,
        method: MeasurementMethod = MeasurementMethod.MANUAL,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        tank = self.store.get(tank_id)
        scope.ensure_access(tank)
        volume = validate_volume(volume, tank.capacity)
        validate_readings(temperature=temperature, density=density, water_level=water_level)
        method = validate_method(method, MeasurementMethod, "measurement_method")

        now = self.clock()

        tank.current_volume = volume
        apply_readings(tank, temperature, density, water_level)
        tank.last_measurement = now
        tank.updated_at = now
        tank.meta = {
            **(tank.meta or {}),
            "last_measurement_method": method,
            "measurement_notes": notes,
            "measured_by": scope.user_id,
        }

        measurement = FuelMeasurement(
            tank_id=tank.id,
            fuel_type_id=tank.fuel_type_id,
            volume=volume,
            temperature=temperature,
            density=density,
            water_level=water_level,
            measurement_method=method,
            measured_by=scope.user_id,
            notes=notes,
            created_at=now,
        )

        with self.store.transaction():
            self.store.add(tank, measurement)
        self.store.refresh(tank)

        view = build_snapshot_view(tank, station_date(now))
        logger.info(
            f"Recorded {volume}L on tank {tank.id} ({method}) by {scope.user_id}: "
            f"status={view['status']}, alerts={view['alert_codes']}"
        )
        return view

    def history(self, filters: HistoryFilter, page: int, limit: int) -> Dict[str, Any]:
        measurements, pagination = paginate(self.store.measurement_query(filters), page, limit)
        return {"data": [measurement_view(m) for m in measurements], "pagination": pagination}
