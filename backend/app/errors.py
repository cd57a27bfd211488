"""
Error taxonomy for the inventory subsystem and the FastAPI handlers that
render it as `{"success": false, "error": ...}` responses.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)


class InventoryError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message, **self.details}


class ValidationError(InventoryError):
    """Missing or out-of-range input."""
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, **details):
        if field:
            details["field"] = field
        super().__init__(message, details)
        self.field = field


class CapacityExceededError(ValidationError):
    def __init__(self, volume: float, capacity: float, field: str = "volume"):
        super().__init__(
            "Volume exceeds tank capacity",
            field=field,
            capacity=capacity,
            volume=volume,
        )
        self.volume = volume
        self.capacity = capacity


class NotFoundError(InventoryError):
    status_code = 404


class AccessDeniedError(InventoryError):
    status_code = 403


class StoreError(InventoryError):
    """Persistence failure, passed through with a normalized {message, code} shape."""
    status_code = 500

    def __init__(self, message: str, code: str = "DATABASE_ERROR"):
        super().__init__(message, {"code": code})
        self.code = code

    @classmethod
    def from_exception(cls, exc: SQLAlchemyError) -> "StoreError":
        if isinstance(exc, IntegrityError):
            return cls("Record violates a database constraint", "CONSTRAINT_VIOLATION")
        if isinstance(exc, OperationalError):
            return cls("Database is unavailable", "CONNECTION_ERROR")
        return cls(str(exc.__class__.__name__), "DATABASE_ERROR")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        logger.warning(f"{request.method} {request.url.path} rejected: {details}")
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid request", "details": details},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        error = StoreError.from_exception(exc)
        logger.error(f"{request.method} {request.url.path} database error: {exc}")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())
