"""
Threshold engine.

Maps a tank snapshot (volume, capacity, bounds, water level, calibration
date and lifecycle status) to a derived fill status and the list of alerts
that apply to it. Pure: no database access, and the only time dependency is
the `today` argument.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple
import enum

from app.config import settings
from app.models.tank import TankStatus


class FillStatus(str, enum.Enum):
    NORMAL = "normal"
    LOW_LEVEL = "low_level"
    HIGH_LEVEL = "high_level"
    CRITICAL = "critical"
    MAINTENANCE = "maintenance"
    ERROR = "error"
    OFFLINE = "offline"


class AlertCode(str, enum.Enum):
    CRITICAL_LOW = "critical_low"
    LOW_LEVEL = "low_level"
    HIGH_LEVEL = "high_level"
    WATER_CONTAMINATION = "water_contamination"
    CALIBRATION_OVERDUE = "calibration_overdue"
    CALIBRATION_NEVER_PERFORMED = "calibration_never_performed"
    MAINTENANCE = "maintenance"
    ERROR = "error"
    OFFLINE = "offline"


ALERT_MESSAGES: Dict[AlertCode, str] = {
    AlertCode.CRITICAL_LOW: "Critical fuel level",
    AlertCode.LOW_LEVEL: "Low fuel level",
    AlertCode.HIGH_LEVEL: "Maximum fuel level exceeded",
    AlertCode.WATER_CONTAMINATION: "Water contamination detected",
    AlertCode.CALIBRATION_OVERDUE: "Calibration overdue",
    AlertCode.CALIBRATION_NEVER_PERFORMED: "Calibration never performed",
    AlertCode.MAINTENANCE: "Tank under maintenance",
    AlertCode.ERROR: "Tank error",
    AlertCode.OFFLINE: "Tank offline",
}

# Lifecycle statuses that replace the numeric status in the result
LIFECYCLE_OVERRIDES: Dict[str, Tuple[FillStatus, AlertCode]] = {
    TankStatus.MAINTENANCE.value: (FillStatus.MAINTENANCE, AlertCode.MAINTENANCE),
    TankStatus.ERROR.value: (FillStatus.ERROR, AlertCode.ERROR),
    TankStatus.OFFLINE.value: (FillStatus.OFFLINE, AlertCode.OFFLINE),
}

SEVERITY_BY_STATUS: Dict[FillStatus, str] = {
    FillStatus.CRITICAL: "critical",
    FillStatus.ERROR: "high",
    FillStatus.OFFLINE: "high",
    FillStatus.LOW_LEVEL: "medium",
    FillStatus.HIGH_LEVEL: "medium",
    FillStatus.MAINTENANCE: "medium",
    FillStatus.NORMAL: "low",
}

# Severity filter -> statuses it matches. Inclusive ladder, not an exact match.
STATUSES_BY_SEVERITY: Dict[str, List[FillStatus]] = {
    "critical": [FillStatus.CRITICAL],
    "high": [FillStatus.HIGH_LEVEL, FillStatus.CRITICAL, FillStatus.ERROR, FillStatus.OFFLINE],
    "medium": [FillStatus.LOW_LEVEL, FillStatus.MAINTENANCE],
    "low": [FillStatus.NORMAL],
}

# Lower sorts first in alert listings; normal always last
STATUS_PRIORITY: Dict[FillStatus, int] = {
    FillStatus.OFFLINE: 0,
    FillStatus.ERROR: 1,
    FillStatus.CRITICAL: 2,
    FillStatus.HIGH_LEVEL: 3,
    FillStatus.LOW_LEVEL: 4,
    FillStatus.MAINTENANCE: 5,
    FillStatus.NORMAL: 6,
}


@dataclass(frozen=True)
class ThresholdLimits:
    critical_fill_percent: float = 5.0
    water_contamination_mm: float = 10.0
    calibration_interval_days: int = 90

    @classmethod
    def from_settings(cls) -> "ThresholdLimits":
        return cls(
            critical_fill_percent=settings.critical_fill_percent,
            water_contamination_mm=settings.water_contamination_mm,
            calibration_interval_days=settings.calibration_interval_days,
        )


@dataclass(frozen=True)
class StatusResult:
    status: FillStatus
    alerts: Tuple[AlertCode, ...] = field(default_factory=tuple)
    fill_level: Optional[float] = None

    @property
    def messages(self) -> List[str]:
        return [ALERT_MESSAGES[code] for code in self.alerts]

    @property
    def codes(self) -> List[str]:
        return [code.value for code in self.alerts]

    @property
    def severity(self) -> str:
        return severity_for_status(self.status)


def fill_percentage(current_volume: Optional[float], capacity: Optional[float]) -> Optional[float]:
    """Fill level in percent, or None for a tank without a usable capacity."""
    if not capacity or capacity <= 0:
        return None
    return (current_volume or 0.0) / capacity * 100


def severity_for_status(status) -> str:
    return SEVERITY_BY_STATUS.get(FillStatus(status), "low")


def statuses_for_severity(severity: str) -> List[FillStatus]:
    return STATUSES_BY_SEVERITY.get(severity, [])


def derive_status(tank, today: date, limits: Optional[ThresholdLimits] = None) -> StatusResult:
    """
    Derive the fill status and alerts for a tank snapshot.

    The first matching fill condition decides the numeric status, but every
    matching condition contributes an alert. A maintenance/error/offline
    lifecycle status replaces the numeric status in the result; water
    contamination turns an otherwise normal tank into maintenance.
    Calibration age only adds alerts.
    """
    limits = limits or ThresholdLimits.from_settings()
    lifecycle = LIFECYCLE_OVERRIDES.get(tank.status or TankStatus.ACTIVE.value)

    fill = fill_percentage(tank.current_volume, tank.capacity)
    if fill is None:
        # Degenerate tank: nothing meaningful to compare against
        return StatusResult(status=lifecycle[0] if lifecycle else FillStatus.NORMAL)

    capacity = tank.capacity
    min_pct = (tank.min_volume or 0.0) / capacity * 100
    max_volume = tank.max_volume if tank.max_volume is not None else capacity
    max_pct = max_volume / capacity * 100

    status = FillStatus.NORMAL
    alerts: List[AlertCode] = []

    if fill <= limits.critical_fill_percent:
        status = FillStatus.CRITICAL
        alerts.append(AlertCode.CRITICAL_LOW)
    elif fill <= min_pct:
        status = FillStatus.LOW_LEVEL
        alerts.append(AlertCode.LOW_LEVEL)

    if fill >= max_pct:
        alerts.append(AlertCode.HIGH_LEVEL)
        if status is FillStatus.NORMAL:
            status = FillStatus.HIGH_LEVEL

    if lifecycle:
        status = lifecycle[0]
        alerts.append(lifecycle[1])

    if tank.water_level is not None and tank.water_level > limits.water_contamination_mm:
        alerts.append(AlertCode.WATER_CONTAMINATION)
        if status is FillStatus.NORMAL:
            status = FillStatus.MAINTENANCE

    if tank.last_calibration is None:
        alerts.append(AlertCode.CALIBRATION_NEVER_PERFORMED)
    elif (today - tank.last_calibration).days > limits.calibration_interval_days:
        alerts.append(AlertCode.CALIBRATION_OVERDUE)

    return StatusResult(status=status, alerts=tuple(alerts), fill_level=fill)
