"""Date string formats used as ledger keys and consumption timestamps.

Both formats are fixed and locale-invariant so that stored documents stay
readable by every client sharing the same store.
"""

from datetime import date, datetime

DAY_FORMAT = "%y_%m_%d"
TIMESTAMP_FORMAT = "%y_%m_%d %H:%M:%S"


def format_day(value: date) -> str:
    """Return the ledger key for a calendar day, e.g. ``25_01_31``."""
    return value.strftime(DAY_FORMAT)


def parse_day(value: str) -> date:
    """Parse a ledger key back into a date."""
    return datetime.strptime(value, DAY_FORMAT).date()


def is_day_key(value: str) -> bool:
    """Return True when the string is a valid ledger day key."""
    try:
        parse_day(value)
    except ValueError:
        return False
    return True


def format_timestamp(value: datetime) -> str:
    """Return a consumption timestamp with second resolution."""
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse a consumption timestamp into a naive datetime."""
    return datetime.strptime(value, TIMESTAMP_FORMAT)
