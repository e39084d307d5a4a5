"""Calendar dates in the household's configured timezone."""

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from household_finance.config import settings


def today(now: datetime | None = None) -> date:
    """The household's current calendar date.

    ``now`` must be timezone-aware and defaults to the current instant.
    """
    now = now or datetime.now(UTC)
    return now.astimezone(ZoneInfo(settings.timezone)).date()
