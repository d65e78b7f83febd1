from datetime import datetime
from zoneinfo import ZoneInfo

from ordo.config import settings


def now() -> datetime:
    """Current instant in the restaurant's local timezone."""
    return datetime.now(ZoneInfo(settings.TIMEZONE))
