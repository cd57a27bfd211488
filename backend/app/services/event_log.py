from typing import Any, Dict, Optional
import logging

from app.errors import ValidationError
from app.models import Tank, TankEvent, TankEventType, EventSeverity
from app.schemas.filters import EventFilter
from app.schemas.tank_event import TankEventCreate
from app.services.access import AccessScope
from app.services.clock import Clock, utc_now
from app.services.store import TankStore, paginate

logger = logging.getLogger(__name__)

EVENT_TYPES = [t.value for t in TankEventType]
SEVERITIES = [s.value for s in EventSeverity]


def validate_event_type(value: str) -> None:
    if value not in EVENT_TYPES:
        raise ValidationError(f"Invalid event type '{value}'", field="event_type", valid_values=EVENT_TYPES)


def validate_severity(value: str) -> None:
    if value not in SEVERITIES:
        raise ValidationError(f"Invalid severity '{value}'", field="severity", valid_values=SEVERITIES)


def event_view(event: TankEvent) -> Dict[str, Any]:
    tank = event.tank
    return {
        "id": event.id,
        "tank_id": event.tank_id,
        "tank_name": tank.name if tank else None,
        "tank_code": tank.code if tank else None,
        "event_type": event.event_type,
        "title": event.title,
        "description": event.description,
        "performed_by": event.performed_by,
        "severity": event.severity,
        "metadata": dict(event.meta or {}),
        "created_at": event.created_at,
    }


class EventLog:
    """Append-only tank event log. Events are never updated or deleted."""

    def __init__(self, store: TankStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    def append(
        self,
        tank: Tank,
        event_type: str,
        title: str,
        description: Optional[str] = None,
        severity: str = EventSeverity.INFO.value,
        performed_by: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> TankEvent:
        """
        Stage an event for `tank` on the current session.

        Nothing is committed here; the caller owns the transaction so the
        event lands together with whatever snapshot change it describes.
        """
        validate_event_type(event_type)
        validate_severity(severity)

        event = TankEvent(
            tank_id=tank.id,
            event_type=event_type,
            title=title,
            description=description,
            severity=severity,
            performed_by=performed_by,
            meta=metadata or {},
            created_at=self.clock(),
        )
        self.store.add(event)
        return event

    def log(self, tank_id: int, data: TankEventCreate, scope: AccessScope) -> Dict[str, Any]:
        """Record an operator-reported event against a tank."""
        tank = self.store.get(tank_id)
        scope.ensure_access(tank)

        with self.store.transaction():
            event = self.append(
                tank,
                event_type=data.event_type,
                title=data.title,
                description=data.description,
                severity=data.severity,
                performed_by=scope.user_id,
                metadata=data.metadata,
            )
        self.store.refresh(event)

        logger.info(f"Logged {event.event_type} event {event.id} for tank {tank.id} by {scope.user_id}")
        return event_view(event)

    def list_events(self, filters: EventFilter, page: int, limit: int) -> Dict[str, Any]:
        if filters.event_type:
            validate_event_type(filters.event_type)

        events, pagination = paginate(self.store.event_query(filters), page, limit)
        return {"data": [event_view(e) for e in events], "pagination": pagination}
