"""Validity duration parsing utilities.

Parses ISO 8601 duration strings used to configure non-renewing
subscriptions and converts them to seconds.
"""

import re

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR
SECONDS_PER_WEEK = 7 * SECONDS_PER_DAY
SECONDS_PER_MONTH = 30 * SECONDS_PER_DAY  # Standard approximation for billing
SECONDS_PER_YEAR = 365 * SECONDS_PER_DAY  # Standard approximation for billing

_DATE_UNITS = {
    "D": SECONDS_PER_DAY,
    "W": SECONDS_PER_WEEK,
    "M": SECONDS_PER_MONTH,
    "Y": SECONDS_PER_YEAR,
}
_TIME_UNITS = {
    "H": SECONDS_PER_HOUR,
    "M": SECONDS_PER_MINUTE,
    "S": 1,
}


def parse_duration_seconds(duration) -> int:
    """Parse an ISO 8601 duration string to whole seconds.

    Supported formats:
    - P[n]D, P[n]W, P[n]M, P[n]Y - date based (months are 30 days, years 365 days)
    - PT[n]H, PT[n]M, PT[n]S - time based

    Plain integers are accepted as a number of seconds.

    Args:
        duration: ISO 8601 duration string (e.g., "P1M", "PT60S") or int seconds

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the duration is invalid, unsupported or not positive

    Examples:
        >>> parse_duration_seconds("P1D")
        86400

        >>> parse_duration_seconds("PT60S")
        60
    """
    if isinstance(duration, bool):
        raise ValueError("Duration must be a string or an integer number of seconds")
    if isinstance(duration, int):
        if duration <= 0:
            raise ValueError(f"Duration must be positive, got: {duration}")
        return duration
    if not duration or not isinstance(duration, str):
        raise ValueError("Duration must be a non-empty string")

    period = duration.strip().upper()

    if not period.startswith("P"):
        raise ValueError(f"Invalid duration format: '{period}'. Must start with 'P'")

    match = re.match(r"^P(?:(\d+)?([DWMY]))?(?:T(\d+)([HMS]))?$", period)
    if not match or period in ("P", "PT"):
        raise ValueError(
            f"Unsupported duration format: '{period}'. "
            "Supported formats: P[n]D, P[n]W, P[n]M, P[n]Y, PT[n]H, PT[n]M, PT[n]S"
        )

    date_number, date_unit, time_number, time_unit = match.groups()
    seconds = 0
    if date_unit:
        seconds += (int(date_number) if date_number else 1) * _DATE_UNITS[date_unit]
    if time_unit:
        seconds += int(time_number) * _TIME_UNITS[time_unit]

    if seconds <= 0:
        raise ValueError(f"Duration must be positive, got: '{period}'")

    return seconds


def format_duration(seconds: int) -> str:
    """Convert seconds back to the most compact ISO 8601 duration string.

    Raises:
        ValueError: If seconds is negative

    Examples:
        >>> format_duration(60)
        'PT1M'

        >>> format_duration(31536000)
        'P1Y'
    """
    if seconds < 0:
        raise ValueError("Seconds must be non-negative")

    if seconds == 0:
        return "PT0S"

    for unit, size in (("Y", SECONDS_PER_YEAR), ("M", SECONDS_PER_MONTH), ("W", SECONDS_PER_WEEK), ("D", SECONDS_PER_DAY)):
        if seconds % size == 0:
            return f"P{seconds // size}{unit}"

    for unit, size in (("H", SECONDS_PER_HOUR), ("M", SECONDS_PER_MINUTE)):
        if seconds % size == 0:
            return f"PT{seconds // size}{unit}"

    return f"PT{seconds}S"
