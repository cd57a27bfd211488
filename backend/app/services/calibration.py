from typing import Any, Dict, Optional
import logging

from app.models import CalibrationMethod, TankEventType, EventSeverity
from app.services.access import AccessScope
from app.services.clock import Clock, utc_now, station_date
from app.services.event_log import EventLog
from app.services.measurements import validate_volume, validate_readings, validate_method
from app.services.snapshots import build_snapshot_view
from app.services.store import TankStore

logger = logging.getLogger(__name__)


class CalibrationHandler:
    """
    Authoritative volume corrections.

    A calibration overwrites the current volume and resets the calibration
    date. It is tracked in the tank event log only, never in the raw
    measurement history.
    """

    def __init__(self, store: TankStore, event_log: EventLog, clock: Clock = utc_now):
        self.store = store
        self.event_log = event_log
        self.clock = clock

    def calibrate(
        self,
        tank_id: int,
        actual_volume: Optional[float],
        scope: AccessScope,
        temperature: Optional[float] = None,
        density: Optional[float] = None,
        water_level: Optional[float] = None,
        method: CalibrationMethod = CalibrationMethod.MANUAL,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        tank = self.store.get(tank_id)
        scope.ensure_access(tank)
        actual_volume = validate_volume(actual_volume, tank.capacity, field="actual_volume")

        validate_readings(temperature=temperature, density=density, water_level=water_level)
        method = validate_method(method, CalibrationMethod, "calibration_method")
        now = self.clock()
        today = station_date(now)
        previous_volume = tank.current_volume

        tank.current_volume = actual_volume
        tank.last_calibration = today
        tank.updated_at = now
        tank.meta = {
            **(tank.meta or {}),
            "last_calibration_method": method,
            "calibration_notes": notes,
            "calibrated_by": scope.user_id,
            "temperature": temperature,
            "density": density,
            "water_level": water_level,
        }

        with self.store.transaction():
            self.store.add(tank)
            self.event_log.append(
                tank,
                event_type=TankEventType.CALIBRATION.value,
                title="Tank calibration",
                description=f"Calibrated to {actual_volume}L using {method} method",
                severity=EventSeverity.INFO.value,
                performed_by=scope.user_id,
                metadata={
                    "previous_volume": previous_volume,
                    "actual_volume": actual_volume,
                    "calibration_method": method,
                    "notes": notes,
                },
            )
        self.store.refresh(tank)

        logger.info(f"Calibrated tank {tank.id}: {previous_volume}L -> {actual_volume}L ({method}) by {scope.user_id}")
        return build_snapshot_view(tank, today)
