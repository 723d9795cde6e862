from datetime import date, datetime
import pytz
from campus_library.config import settings

LIBRARY_TZ = pytz.timezone(settings.timezone)

def now_local() -> datetime:
    """Get current datetime in the library's timezone."""
    return datetime.now(LIBRARY_TZ)

def local_date(value: datetime) -> date:
    """Calendar date of a stored timestamp, as seen from the library."""
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(LIBRARY_TZ).date()
