"""Publish-date helpers.

The remote API reports timestamps as naive UTC strings such as
``2019-12-29 08:00:00``. These helpers convert between that form and
timezone-aware datetimes.
"""

from datetime import datetime, timezone

API_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Used when an item carries no publish date at all.
FALLBACK_YEAR = "1990"


def now_utc() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_api_date(value: str) -> datetime:
    """Parse an API timestamp (naive UTC) into an aware datetime.

    Args:
        value: Timestamp such as ``2019-12-29 08:00:00`` or ``2019-12-29``

    Returns:
        Aware datetime in UTC

    Raises:
        ValueError: If the value is not a recognizable timestamp
    """
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_api_date(value: datetime) -> str:
    """Format a datetime in the API's naive UTC form."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(API_DATE_FORMAT)


def year_of(value: str | None) -> str:
    """Release year label of an API timestamp."""
    if not value:
        return FALLBACK_YEAR
    return value.split("-")[0]


def day_of(value: str | None) -> str:
    """Date part (``YYYY-MM-DD``) of an API timestamp."""
    if not value:
        return ""
    return value.split(" ")[0]
