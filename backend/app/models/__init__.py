from app.models.fuel_type import FuelType
from app.models.trading_point import TradingPoint
from app.models.tank import Tank, TankStatus, CalibrationMethod
from app.models.fuel_measurement import FuelMeasurement, MeasurementMethod
from app.models.tank_event import TankEvent, TankEventType, EventSeverity

__all__ = [
    "FuelType",
    "TradingPoint",
    "Tank",
    "TankStatus",
    "CalibrationMethod",
    "FuelMeasurement",
    "MeasurementMethod",
    "TankEvent",
    "TankEventType",
    "EventSeverity",
]
