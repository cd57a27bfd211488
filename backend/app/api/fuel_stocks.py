from fastapi import APIRouter, Depends, Query, Response
from datetime import datetime
from typing import Optional
import logging

from app.api.deps import get_store, get_clock, attachment
from app.config import settings
from app.schemas import (
    StockFilter, AlertFilter, HistoryFilter, MeasurementCreate,
    TankSnapshotEnvelope, TankSnapshotListResponse, AlertListResponse, MeasurementHistoryResponse,
)
from app.services.access import AccessScope, require_roles, READ_ROLES, WRITE_READING_ROLES, EXPORT_ROLES
from app.services.alerts import AlertQueryService
from app.services.clock import Clock, station_date
from app.services.export import ExportFormatter, ExportFormat, ExportSection, STOCK_COLUMNS, MEASUREMENT_COLUMNS
from app.services.measurements import MeasurementRecorder
from app.services.snapshots import SnapshotService
from app.services.store import TankStore

router = APIRouter()
logger = logging.getLogger(__name__)


def _stock_filter(
    fuel_type_id: Optional[int] = Query(None),
    trading_point_id: Optional[int] = Query(None),
    network_id: Optional[int] = Query(None),
    tank_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="Derived status: normal, low_level, high_level, critical, ..."),
    lifecycle_status: Optional[str] = Query(None, description="Operator status: active, maintenance, error, offline"),
    has_alerts: bool = Query(False),
) -> StockFilter:
    return StockFilter(
        fuel_type_id=fuel_type_id,
        trading_point_id=trading_point_id,
        network_id=network_id,
        tank_id=tank_id,
        status=status,
        lifecycle_status=lifecycle_status,
        has_alerts=has_alerts,
    )


@router.get("", response_model=TankSnapshotListResponse)
async def list_fuel_stocks(
    filters: StockFilter = Depends(_stock_filter),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    scope: AccessScope = Depends(require_roles(READ_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """Tank snapshots with derived status and alerts, plus a summary of the current page."""
    result = SnapshotService(store, clock).list_snapshots(scope.restrict(filters), page, limit)
    return {"success": True, **result, "filters": filters.model_dump(exclude_defaults=True)}


@router.get("/alerts", response_model=AlertListResponse)
async def list_alerts(
    severity: Optional[str] = Query(None, description="critical, high, medium or low"),
    trading_point_id: Optional[int] = Query(None),
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=settings.max_page_size),
    scope: AccessScope = Depends(require_roles(READ_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    filters = scope.restrict(AlertFilter(severity=severity, trading_point_id=trading_point_id))
    if page is not None and limit is None:
        limit = settings.default_page_size
    result = AlertQueryService(store, clock).list_alerts(filters, page, limit)
    return {"success": True, **result}


@router.get("/history", response_model=MeasurementHistoryResponse)
async def measurement_history(
    tank_id: Optional[int] = Query(None),
    fuel_type_id: Optional[int] = Query(None),
    trading_point_id: Optional[int] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    scope: AccessScope = Depends(require_roles(READ_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """Raw measurement history, newest first."""
    filters = HistoryFilter(
        tank_id=tank_id,
        fuel_type_id=fuel_type_id,
        trading_point_id=trading_point_id,
        date_from=date_from,
        date_to=date_to,
    )
    result = MeasurementRecorder(store, clock).history(scope.restrict(filters), page, limit)
    return {"success": True, **result, "filters": filters.model_dump(exclude_defaults=True, mode="json")}


@router.get("/export")
async def export_fuel_stocks(
    format: ExportFormat = Query(ExportFormat.CSV),
    include_history: bool = Query(False),
    filters: StockFilter = Depends(_stock_filter),
    scope: AccessScope = Depends(require_roles(EXPORT_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """
    Download the snapshot list as CSV, JSON or XLSX.

    `include_history` adds a `measurement_history` section to JSON and XLSX
    output. CSV always carries the snapshot rows only.
    """
    max_rows = settings.export_max_rows
    rows = SnapshotService(store, clock).list_snapshots(scope.restrict(filters), 1, max_rows)["data"]

    extra = []
    if include_history:
        history_filter = scope.restrict(HistoryFilter(tank_ids=[row["id"] for row in rows]))
        history = MeasurementRecorder(store, clock).history(history_filter, 1, max_rows)["data"]
        extra.append(ExportSection("measurement_history", history, MEASUREMENT_COLUMNS))

    result = ExportFormatter().export(
        rows, STOCK_COLUMNS, format, "stocks",
        extra=extra, filename_prefix="fuel-stocks", today=station_date(clock()),
    )
    return Response(content=result.content, media_type=result.media_type, headers=attachment(result.filename))


@router.get("/{tank_id}", response_model=TankSnapshotEnvelope)
async def get_fuel_stock(
    tank_id: int,
    scope: AccessScope = Depends(require_roles(READ_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    return {"success": True, "data": SnapshotService(store, clock).get_snapshot(tank_id, scope)}


@router.post("/{tank_id}/measurement", response_model=TankSnapshotEnvelope)
async def record_measurement(
    tank_id: int,
    measurement: MeasurementCreate,
    scope: AccessScope = Depends(require_roles(WRITE_READING_ROLES)),
    store: TankStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """Record a raw reading. Validation happens before anything is written."""
    snapshot = MeasurementRecorder(store, clock).record(
        tank_id,
        measurement.volume,
        scope,
        temperature=measurement.temperature,
        density=measurement.density,
        water_level=measurement.water_level,
        method=measurement.measurement_method,
        notes=measurement.notes,
    )
    return {"success": True, "data": snapshot, "message": "Measurement recorded successfully"}
