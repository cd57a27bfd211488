from fastapi import APIRouter, Depends, Query, Response
from datetime import datetime
from typing import Optional
import logging

from app.api.deps import get_store, get_clock, attachment
from app.config import settings
from app.schemas import (
    StockFilter, EventFilter, TankCreate, TankUpdate, CalibrationCreate, TankEventCreate,
    TankSnapshotEnvelope, TankSnapshotListResponse, TankEventEnvelope, TankEventListResponse,
)
from app.services.access import (
    AccessScope, require_roles, READ_ROLES, WRITE_READING_ROLES, ADMIN_EDIT_ROLES, EXPORT_ROLES,
)
from app.services.calibration import CalibrationHandler
from app.services.clock import Clock, station_date
from app.services.event_log import EventLog
from app.services.export import ExportFormatter, ExportFormat, ExportSection, TANK_COLUMNS, EVENT_COLUMNS
from app.services.snapshots import SnapshotService
from app.services.store import TankStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=TankSnapshotListResponse)
async def list_tanks(
    trading_point_id: Optional[int] = Query(None),
    network_id: Optional[int] = Query(None),
    fuel_type_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="Operator status: active, maintenance, error, offline"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    scope: AccessScope = Depends(require_roles(READ_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    filters = StockFilter(
        trading_point_id=trading_point_id, network_id=network_id, fuel_type_id=fuel_type_id, lifecycle_status=status,
    )
    result = SnapshotService(store, clock).list_snapshots(scope.restrict(filters), page, limit)
    return {"success": True, **result, "filters": filters.model_dump(exclude_defaults=True)}


@router.post("", response_model=TankSnapshotEnvelope, status_code=201)
async def create_tank(
    tank: TankCreate,
    scope: AccessScope = Depends(require_roles(ADMIN_EDIT_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    snapshot = SnapshotService(store, clock).provision(tank, scope)
    return {"success": True, "data": snapshot, "message": "Tank created successfully"}


@router.get("/export")
async def export_tanks(
    format: ExportFormat = Query(ExportFormat.CSV),
    include_events: bool = Query(False),
    trading_point_id: Optional[int] = Query(None),
    fuel_type_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    scope: AccessScope = Depends(require_roles(EXPORT_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """Download tank configuration and status; JSON and XLSX can carry the event log too."""
    max_rows = settings.export_max_rows
    filters = StockFilter(trading_point_id=trading_point_id, fuel_type_id=fuel_type_id, lifecycle_status=status)
    rows = SnapshotService(store, clock).list_snapshots(scope.restrict(filters), 1, max_rows)["data"]

    extra = []
    if include_events:
        event_filter = scope.restrict(EventFilter(tank_ids=[row["id"] for row in rows]))
        events = EventLog(store, clock).list_events(event_filter, 1, max_rows)["data"]
        extra.append(ExportSection("tank_events", events, EVENT_COLUMNS))

    result = ExportFormatter().export(
        rows, TANK_COLUMNS, format, "tanks",
        extra=extra, today=station_date(clock()),
    )
    return Response(content=result.content, media_type=result.media_type, headers=attachment(result.filename))


@router.get("/{tank_id}", response_model=TankSnapshotEnvelope)
async def get_tank(
    tank_id: int,
    scope: AccessScope = Depends(require_roles(READ_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    return {"success": True, "data": SnapshotService(store, clock).get_snapshot(tank_id, scope)}


@router.patch("/{tank_id}", response_model=TankSnapshotEnvelope)
async def update_tank(
    tank_id: int,
    update: TankUpdate,
    scope: AccessScope = Depends(require_roles(ADMIN_EDIT_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """Edit name, bounds, fuel type, equipment or lifecycle status. Capacity and volume are not editable here."""
    snapshot = SnapshotService(store, clock).update_settings(tank_id, update, scope)
    return {"success": True, "data": snapshot, "message": "Tank updated successfully"}


@router.post("/{tank_id}/calibration", response_model=TankSnapshotEnvelope)
async def calibrate_tank(
    tank_id: int,
    calibration: CalibrationCreate,
    scope: AccessScope = Depends(require_roles(WRITE_READING_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    handler = CalibrationHandler(store, EventLog(store, clock), clock)
    snapshot = handler.calibrate(
        tank_id,
        calibration.actual_volume,
        scope,
        temperature=calibration.temperature,
        density=calibration.density,
        water_level=calibration.water_level,
        method=calibration.calibration_method,
        notes=calibration.notes,
    )
    return {"success": True, "data": snapshot, "message": "Tank calibrated successfully"}


@router.get("/{tank_id}/events", response_model=TankEventListResponse)
async def list_tank_events(
    tank_id: int,
    event_type: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    scope: AccessScope = Depends(require_roles(READ_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    scope.ensure_access(store.get(tank_id))

    filters = EventFilter(tank_id=tank_id, event_type=event_type, date_from=date_from, date_to=date_to)
    result = EventLog(store, clock).list_events(filters, page, limit)
    return {"success": True, **result, "filters": filters.model_dump(exclude_defaults=True, mode="json")}


@router.post("/{tank_id}/events", response_model=TankEventEnvelope, status_code=201)
async def log_tank_event(
    tank_id: int,
    event: TankEventCreate,
    scope: AccessScope = Depends(require_roles(WRITE_READING_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    return {"success": True, "data": EventLog(store, clock).log(tank_id, event, scope)}
