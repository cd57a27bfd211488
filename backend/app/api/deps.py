from fastapi import Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.clock import Clock, utc_now
from app.services.store import TankStore


def get_store(db: Session = Depends(get_db)) -> TankStore:
    return TankStore(db)


def get_clock() -> Clock:
    """Overridden in tests to pin 'now'."""
    return utc_now


def attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}
