from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from app.errors import ValidationError
from app.schemas.filters import AlertFilter
from app.services.clock import Clock, utc_now, station_date
from app.services.store import TankStore, paginate_list
from app.services.thresholds import (
    FillStatus, STATUS_PRIORITY, STATUSES_BY_SEVERITY, derive_status, statuses_for_severity,
)

logger = logging.getLogger(__name__)

SEVERITIES = list(STATUSES_BY_SEVERITY)


class AlertQueryService:
    def __init__(self, store: TankStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    def list_alerts(
        self, filters: AlertFilter, page: Optional[int] = None, limit: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Derive status for every tank in scope and return the ones that need
        attention: a non-normal status, or any alert at all (a normal tank
        with an overdue calibration still shows up, with severity `low`).
        """
        wanted = None
        if filters.severity:
            if filters.severity not in SEVERITIES:
                raise ValidationError(
                    f"Invalid severity '{filters.severity}'", field="severity", valid_values=SEVERITIES
                )
            wanted = set(statuses_for_severity(filters.severity))

        today = station_date(self.clock())
        items: List[Dict[str, Any]] = []

        for tank in self.store.find_all(filters):
            result = derive_status(tank, today)
            if result.status is FillStatus.NORMAL and not result.alerts:
                continue
            if wanted is not None and result.status not in wanted:
                continue

            items.append({
                "tank_id": tank.id,
                "tank_name": tank.name,
                "tank_code": tank.code,
                "trading_point_id": tank.trading_point_id,
                "trading_point_name": tank.trading_point.name if tank.trading_point else None,
                "fuel_type_id": tank.fuel_type_id,
                "fuel_type_name": tank.fuel_type.name if tank.fuel_type else None,
                "current_volume": tank.current_volume or 0.0,
                "capacity": tank.capacity,
                "fill_level": round(result.fill_level, 2) if result.fill_level is not None else None,
                "status": result.status.value,
                "severity": result.severity,
                "alerts": result.messages,
                "alert_codes": result.codes,
                "last_measurement": tank.last_measurement,
            })

        # Newest reading first within a status, tanks never measured last
        items.sort(key=lambda i: i["last_measurement"] or datetime.min, reverse=True)
        items.sort(key=lambda i: STATUS_PRIORITY[FillStatus(i["status"])])

        summary = {"total": len(items)}
        for severity in SEVERITIES:
            summary[severity] = sum(1 for i in items if i["severity"] == severity)

        logger.debug(f"Alert scan found {len(items)} tanks needing attention")

        if page is None or limit is None:
            return {"data": items, "summary": summary, "pagination": None}

        page_items, pagination = paginate_list(items, page, limit)
        return {"data": page_items, "summary": summary, "pagination": pagination}
