from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.schemas.common import Pagination


class TankEventCreate(BaseModel):
    event_type: str
    title: str
    description: Optional[str] = None
    severity: str = "info"
    metadata: Optional[Dict[str, Any]] = None

    @field_validator('title')
    @classmethod
    def title_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Title must not be blank')
        return v.strip()


class TankEventResponse(BaseModel):
    id: int
    tank_id: int
    tank_name: Optional[str] = None
    tank_code: Optional[str] = None
    event_type: str
    title: str
    description: Optional[str] = None
    performed_by: Optional[str] = None
    severity: str
    metadata: Dict[str, Any] = {}
    created_at: datetime


class TankEventEnvelope(BaseModel):
    success: bool = True
    data: TankEventResponse


class TankEventListResponse(BaseModel):
    success: bool = True
    data: List[TankEventResponse]
    pagination: Pagination
    filters: Dict[str, Any] = {}
