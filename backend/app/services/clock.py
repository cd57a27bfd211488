from datetime import date, datetime
from typing import Callable, Optional

import pytz

from app.config import settings

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Naive UTC timestamp, the form every DateTime column is stored in."""
    return datetime.now(pytz.UTC).replace(tzinfo=None)


def station_date(moment: datetime, timezone: Optional[str] = None) -> date:
    """Calendar day of a naive UTC timestamp in the station's timezone."""
    tz = pytz.timezone(timezone or settings.station_timezone)
    return pytz.UTC.localize(moment).astimezone(tz).date()
