"""Billing frequency helpers: period end dates and interval units."""

import logging
from datetime import datetime, timedelta, timezone

from dateutil.relativedelta import relativedelta

from digitalsite.models.enums import IntervalUnit

logger = logging.getLogger(__name__)

CREATED_DATE_FORMAT = "%Y-%m-%d-%H-%M-%S"

_FREQUENCY_UNITS: dict[str, IntervalUnit] = {
    "weekly": IntervalUnit.WEEK,
    "monthly": IntervalUnit.MONTH,
    "annually": IntervalUnit.YEAR,
}


def resolve_end_date(start: datetime, frequency: str, interval: int) -> datetime:
    """Advance ``start`` by ``interval`` billing periods of ``frequency``.

    Unrecognised frequencies fall back to a single month. Month and year
    arithmetic clamps to the last day of the target month (Jan 31 + 1 month
    is Feb 28/29).
    """
    if frequency == "weekly":
        return start + timedelta(days=7 * interval)
    if frequency == "monthly":
        return start + relativedelta(months=interval)
    if frequency == "annually":
        return start + relativedelta(years=interval)
    return start + relativedelta(months=1)


def map_frequency_to_interval_unit(frequency: str) -> IntervalUnit:
    """Map a webhook frequency string to an IntervalUnit. Defaults to MONTH."""
    return _FREQUENCY_UNITS.get(frequency, IntervalUnit.MONTH)


def utcnow() -> datetime:
    """Current time as naive UTC, matching the DB columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_created_date(value: str) -> datetime:
    """Parse a MamoPay ``created_date`` (``2025-09-08-12-18-51``).

    Malformed input falls back to the current time and logs the rejected
    value at warning level.
    """
    try:
        return datetime.strptime(value, CREATED_DATE_FORMAT)
    except (TypeError, ValueError):
        logger.warning("Malformed created_date %r, falling back to current time", value)
        return utcnow()
