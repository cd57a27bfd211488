import itertools
import os
from datetime import datetime, timedelta

# Must be set before app.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_clock
from app.database import Base, get_db
from app.main import app
from app.models import FuelType, Tank, TradingPoint
from app.services.access import AccessScope
from app.services.store import TankStore

FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0)
TODAY = FIXED_NOW.date()

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def fixed_clock():
    return FIXED_NOW


def auth_headers(user="op-1", roles="operator", trading_points=None, network=None):
    headers = {"X-User-Id": user, "X-User-Roles": roles}
    if trading_points is not None:
        headers["X-Trading-Point-Ids"] = ",".join(str(tp) for tp in trading_points)
    if network is not None:
        headers["X-Network-Id"] = str(network)
    return headers


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db):
    return TankStore(db)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: fixed_clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def station(db):
    point = TradingPoint(network_id=1, name="Station North", code="N-01")
    db.add(point)
    db.commit()
    db.refresh(point)
    return point


@pytest.fixture
def other_station(db):
    point = TradingPoint(network_id=2, name="Station South", code="S-01")
    db.add(point)
    db.commit()
    db.refresh(point)
    return point


@pytest.fixture
def diesel(db):
    fuel_type = FuelType(name="Diesel", code="DT", category="diesel")
    db.add(fuel_type)
    db.commit()
    db.refresh(fuel_type)
    return fuel_type


@pytest.fixture
def make_tank(db, station, diesel):
    """Factory for tanks that start out healthy: half full, clean, freshly calibrated."""
    codes = itertools.count(1)

    def _make(**overrides):
        number = next(codes)
        values = dict(
            trading_point_id=station.id,
            fuel_type_id=diesel.id,
            name=f"Tank {number}",
            code=f"T{number}",
            capacity=10000.0,
            min_volume=1000.0,
            max_volume=9500.0,
            current_volume=5000.0,
            water_level=2.0,
            last_calibration=TODAY - timedelta(days=10),
            status="active",
            meta={},
        )
        values.update(overrides)
        tank = Tank(**values)
        db.add(tank)
        db.commit()
        db.refresh(tank)
        return tank

    return _make


@pytest.fixture
def admin_scope():
    return AccessScope(user_id="admin-1", roles=["system_admin"])


@pytest.fixture
def operator_scope(station):
    return AccessScope(user_id="op-1", roles=["operator"], trading_point_ids=[station.id])
