from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from app.database import Base
from app.services.clock import utc_now


class TradingPoint(Base):
    """Fuel station. Managed by the network administration module; read here for scope and display."""
    __tablename__ = "trading_points"

    id = Column(Integer, primary_key=True, index=True)
    network_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utc_now)

    tanks = relationship("Tank", back_populates="trading_point")

    def __repr__(self):
        return f"<TradingPoint(id={self.id}, name='{self.name}')>"
