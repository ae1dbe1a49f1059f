import logging
from datetime import datetime, timedelta, timezone

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

# Sort position for feed items that carry no usable date: oldest, not "now".
EPOCH = datetime(1970, 1, 1)

# Common timezone abbreviations seen in RSS pubDate values
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(dt_value, default_now: bool = True) -> datetime | None:
    """
    Parse a datetime from an external payload to naive UTC.

    Handles:
    - ISO 8601 and RFC 822 strings (with or without timezone)
    - datetime objects with or without timezone
    - None or invalid -> current UTC time (if default_now=True) or None

    Strings without a timezone are taken as UTC.
    """
    if dt_value is None:
        return utc_now() if default_now else None

    if isinstance(dt_value, str):
        value = dt_value.strip()
        if not value:
            return utc_now() if default_now else None
        try:
            dt = date_parser.parse(value, tzinfos=TZINFOS)
        except (ValueError, OverflowError, TypeError):
            logger.debug(f"Failed to parse datetime string: {dt_value}")
            return utc_now() if default_now else None
        return ensure_naive_utc(dt)

    if isinstance(dt_value, datetime):
        return ensure_naive_utc(dt_value)

    logger.warning(f"Unexpected datetime type: {type(dt_value)}")
    return utc_now() if default_now else None


def ensure_naive_utc(dt_value: datetime | None) -> datetime | None:
    """
    Ensure a datetime is naive UTC.

    Useful when reading from database where datetime might be stored
    as naive but needs to be compared with other naive UTC datetimes.
    """
    if dt_value is None:
        return None

    if isinstance(dt_value, datetime):
        if dt_value.tzinfo is not None:
            return dt_value.astimezone(timezone.utc).replace(tzinfo=None)
        return dt_value

    return None


def minutes_since(dt_value: datetime | None, now: datetime | None = None) -> float:
    """Minutes elapsed since dt_value (0 when unknown)."""
    start = ensure_naive_utc(dt_value)
    if start is None:
        return 0.0
    return ((now or utc_now()) - start).total_seconds() / 60
