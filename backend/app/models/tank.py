from sqlalchemy import (
    Column, Integer, String, Float, Date, DateTime, ForeignKey, JSON,
    CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
import enum

from app.database import Base
from app.services.clock import utc_now


class TankStatus(str, enum.Enum):
    """Operator-set lifecycle status, independent of the derived fill status."""
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    ERROR = "error"
    OFFLINE = "offline"


class CalibrationMethod(str, enum.Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"
    CERTIFIED = "certified"


class Tank(Base):
    """
    Current snapshot of a physical tank. Mutated only by measurements,
    calibrations and administrative edits; the measurement history and the
    event log are the audit trail behind it.
    """
    __tablename__ = "tanks"

    id = Column(Integer, primary_key=True, index=True)
    trading_point_id = Column(Integer, ForeignKey("trading_points.id"), nullable=False, index=True)
    fuel_type_id = Column(Integer, ForeignKey("fuel_types.id"), nullable=True, index=True)
    equipment_id = Column(Integer, nullable=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False)

    # Bounds, litres
    capacity = Column(Float, nullable=False)
    min_volume = Column(Float, nullable=False, default=0.0)
    max_volume = Column(Float, nullable=True)

    # Latest readings
    current_volume = Column(Float, nullable=False, default=0.0)
    temperature = Column(Float, nullable=True)
    density = Column(Float, nullable=True)
    water_level = Column(Float, nullable=True)  # mm
    last_measurement = Column(DateTime, nullable=True, index=True)

    last_calibration = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=TankStatus.ACTIVE.value)

    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint('trading_point_id', 'code', name='uq_tanks_trading_point_code'),
        CheckConstraint('capacity > 0', name='check_capacity_positive'),
        CheckConstraint('current_volume >= 0 AND current_volume <= capacity', name='check_volume_within_capacity'),
        CheckConstraint(
            "status IN ('active', 'maintenance', 'error', 'offline')",
            name='check_tank_status',
        ),
    )

    # Relationships
    trading_point = relationship("TradingPoint", back_populates="tanks")
    fuel_type = relationship("FuelType")
    measurements = relationship("FuelMeasurement", back_populates="tank")
    events = relationship("TankEvent", back_populates="tank")

    @property
    def effective_max_volume(self):
        """Upper bound, falling back to capacity when none was configured."""
        return self.max_volume if self.max_volume is not None else self.capacity

    @property
    def network_id(self):
        return self.trading_point.network_id if self.trading_point else None

    def __repr__(self):
        return f"<Tank(id={self.id}, code='{self.code}', current_volume={self.current_volume})>"
