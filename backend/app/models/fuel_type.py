from sqlalchemy import Column, Integer, String

from app.database import Base


class FuelType(Base):
    __tablename__ = "fuel_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    category = Column(String(50), nullable=True)  # e.g. "gasoline", "diesel", "gas"

    def __repr__(self):
        return f"<FuelType(id={self.id}, code='{self.code}')>"
