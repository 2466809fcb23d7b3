"""Calendar clock used for due-date and overdue decisions."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from src.core.config import settings


def today() -> date:
    """Return the current calendar date in the configured farm timezone.

    Callers must go through this function rather than caching its result, so that
    overdue status flips at the farm's midnight.
    """
    return datetime.now(ZoneInfo(settings.farm_timezone)).date()
