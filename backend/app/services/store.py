"""
Store adapter over the SQLAlchemy session: filtered and paginated reads of
tank snapshots, measurement history and tank events, plus the transaction
boundary every write goes through.
"""
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple
import logging
import math

from sqlalchemy import false
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, Query, joinedload

from app.errors import NotFoundError, StoreError
from app.models import Tank, TradingPoint, FuelType, FuelMeasurement, TankEvent
from app.schemas.filters import ScopedFilter, HistoryFilter, EventFilter

logger = logging.getLogger(__name__)


def build_pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit > 0 else 0,
    }


def paginate(query: Query, page: int, limit: int) -> Tuple[List[Any], Dict[str, int]]:
    """Offset-paginate a query. `page` is 1-based."""
    total = query.order_by(None).enable_eagerloads(False).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, build_pagination(page, limit, total)


def paginate_list(items: List[Any], page: int, limit: int) -> Tuple[List[Any], Dict[str, int]]:
    offset = (page - 1) * limit
    return items[offset:offset + limit], build_pagination(page, limit, len(items))


class TankStore:
    def __init__(self, db: Session):
        self.db = db

    # Tanks

    def _tank_query(self) -> Query:
        return self.db.query(Tank).options(
            joinedload(Tank.trading_point),
            joinedload(Tank.fuel_type),
        )

    def _apply_scope(self, query: Query, filters: ScopedFilter) -> Query:
        """Restrict a query that selects from (or joins) tanks to the caller's scope."""
        if filters.deny_all:
            return query.filter(false())
        if filters.trading_point_ids:
            query = query.filter(Tank.trading_point_id.in_(filters.trading_point_ids))
        if filters.network_id is not None:
            query = query.filter(Tank.trading_point.has(TradingPoint.network_id == filters.network_id))
        return query

    def tank_query(self, filters: ScopedFilter) -> Query:
        query = self._apply_scope(self._tank_query(), filters)

        trading_point_id = getattr(filters, "trading_point_id", None)
        if trading_point_id:
            query = query.filter(Tank.trading_point_id == trading_point_id)

        fuel_type_id = getattr(filters, "fuel_type_id", None)
        if fuel_type_id:
            query = query.filter(Tank.fuel_type_id == fuel_type_id)

        tank_id = getattr(filters, "tank_id", None)
        if tank_id:
            query = query.filter(Tank.id == tank_id)

        lifecycle_status = getattr(filters, "lifecycle_status", None)
        if lifecycle_status:
            query = query.filter(Tank.status == lifecycle_status)

        return query

    def find_by_id(self, tank_id: int) -> Optional[Tank]:
        return self._tank_query().filter(Tank.id == tank_id).first()

    def get(self, tank_id: int) -> Tank:
        tank = self.find_by_id(tank_id)
        if not tank:
            raise NotFoundError("Tank not found", {"tank_id": tank_id})
        return tank

    def find_all(self, filters: ScopedFilter, order_by=None) -> List[Tank]:
        query = self.tank_query(filters)
        return query.order_by(*(order_by or self.default_order())).all()

    def find_all_with_filters(
        self, filters: ScopedFilter, page: int, limit: int, order_by=None
    ) -> Tuple[List[Tank], Dict[str, int]]:
        query = self.tank_query(filters).order_by(*(order_by or self.default_order()))
        return paginate(query, page, limit)

    @staticmethod
    def default_order():
        return [Tank.last_measurement.desc().nulls_last(), Tank.id]

    def code_exists(self, trading_point_id: int, code: str) -> bool:
        return self.db.query(Tank.id).filter(
            Tank.trading_point_id == trading_point_id,
            Tank.code == code,
        ).first() is not None

    # Lookups

    def get_trading_point(self, trading_point_id: int) -> TradingPoint:
        point = self.db.query(TradingPoint).filter(TradingPoint.id == trading_point_id).first()
        if not point:
            raise NotFoundError("Trading point not found", {"trading_point_id": trading_point_id})
        return point

    def get_fuel_type(self, fuel_type_id: int):
        fuel_type = self.db.query(FuelType).filter(FuelType.id == fuel_type_id).first()
        if not fuel_type:
            raise NotFoundError("Fuel type not found", {"fuel_type_id": fuel_type_id})
        return fuel_type

    # Append-only records

    def measurement_query(self, filters: HistoryFilter) -> Query:
        query = self.db.query(FuelMeasurement).join(Tank, FuelMeasurement.tank_id == Tank.id).options(
            joinedload(FuelMeasurement.tank),
            joinedload(FuelMeasurement.fuel_type),
        )
        query = self._apply_scope(query, filters)

        if filters.tank_id:
            query = query.filter(FuelMeasurement.tank_id == filters.tank_id)
        if filters.tank_ids is not None:
            query = query.filter(FuelMeasurement.tank_id.in_(filters.tank_ids))
        if filters.fuel_type_id:
            query = query.filter(FuelMeasurement.fuel_type_id == filters.fuel_type_id)
        if filters.trading_point_id:
            query = query.filter(Tank.trading_point_id == filters.trading_point_id)
        if filters.date_from:
            query = query.filter(FuelMeasurement.created_at >= filters.date_from)
        if filters.date_to:
            query = query.filter(FuelMeasurement.created_at <= filters.date_to)

        return query.order_by(FuelMeasurement.created_at.desc(), FuelMeasurement.id.desc())

    def event_query(self, filters: EventFilter) -> Query:
        query = self.db.query(TankEvent).join(Tank, TankEvent.tank_id == Tank.id).options(
            joinedload(TankEvent.tank),
        )
        query = self._apply_scope(query, filters)

        if filters.tank_id:
            query = query.filter(TankEvent.tank_id == filters.tank_id)
        if filters.tank_ids is not None:
            query = query.filter(TankEvent.tank_id.in_(filters.tank_ids))
        if filters.event_type:
            query = query.filter(TankEvent.event_type == filters.event_type)
        if filters.date_from:
            query = query.filter(TankEvent.created_at >= filters.date_from)
        if filters.date_to:
            query = query.filter(TankEvent.created_at <= filters.date_to)

        return query.order_by(TankEvent.created_at.desc(), TankEvent.id.desc())

    # Writes

    def add(self, *records) -> None:
        for record in records:
            self.db.add(record)

    def create(self, record):
        """Insert a single record in its own transaction and return it refreshed."""
        with self.transaction():
            self.add(record)
        self.refresh(record)
        return record

    @contextmanager
    def transaction(self):
        """Commit everything staged inside the block, or roll all of it back."""
        try:
            yield self
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store write failed, rolled back: {e}")
            raise StoreError.from_exception(e) from e
        except Exception:
            self.db.rollback()
            raise

    def refresh(self, record) -> None:
        self.db.refresh(record)
