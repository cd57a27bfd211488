from sqlalchemy import Column, Integer, Float, String, Text, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
import enum

from app.database import Base
from app.services.clock import utc_now


class MeasurementMethod(str, enum.Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"
    CALIBRATED_STICK = "calibrated_stick"


class FuelMeasurement(Base):
    """Append-only record of a raw tank reading. Rows are never updated or deleted."""
    __tablename__ = "fuel_measurement_history"

    id = Column(Integer, primary_key=True, index=True)
    tank_id = Column(Integer, ForeignKey("tanks.id"), nullable=False, index=True)
    fuel_type_id = Column(Integer, ForeignKey("fuel_types.id"), nullable=True, index=True)
    volume = Column(Float, nullable=False)
    temperature = Column(Float, nullable=True)
    density = Column(Float, nullable=True)
    water_level = Column(Float, nullable=True)
    measurement_method = Column(String(30), nullable=False, default=MeasurementMethod.MANUAL.value)
    measured_by = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    # Relationships
    tank = relationship("Tank", back_populates="measurements")
    fuel_type = relationship("FuelType")

    __table_args__ = (
        Index('ix_fuel_measurement_history_tank_created', 'tank_id', 'created_at'),
        CheckConstraint('volume >= 0', name='check_measurement_volume_non_negative'),
    )

    def __repr__(self):
        return f"<FuelMeasurement(id={self.id}, tank_id={self.tank_id}, volume={self.volume})>"
