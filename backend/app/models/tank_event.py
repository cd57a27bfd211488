from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
import enum

from app.database import Base
from app.services.clock import utc_now


class TankEventType(str, enum.Enum):
    DRAIN = "drain"
    FILL = "fill"
    CALIBRATION = "calibration"
    MAINTENANCE = "maintenance"
    ALARM = "alarm"


class EventSeverity(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class TankEvent(Base):
    """Append-only log of tank-level occurrences."""
    __tablename__ = "tank_events"

    id = Column(Integer, primary_key=True, index=True)
    tank_id = Column(Integer, ForeignKey("tanks.id"), nullable=False, index=True)
    event_type = Column(String(20), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    performed_by = Column(String(100), nullable=True)
    severity = Column(String(20), nullable=False, default=EventSeverity.INFO.value)
    meta = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    tank = relationship("Tank", back_populates="events")

    __table_args__ = (
        Index('ix_tank_events_tank_created', 'tank_id', 'created_at'),
    )

    def __repr__(self):
        return f"<TankEvent(id={self.id}, tank_id={self.tank_id}, type='{self.event_type}')>"
