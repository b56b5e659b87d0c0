"""Reference time sources for receipt classification.

Responsibilities:
- Provide "now" for verify calls that don't pass an explicit reference time
- Allow a virtual clock to be fast-forwarded to check expiry behaviour
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

from iap_orchestrator.logging_config import get_logger

logger = get_logger(__name__)


class Clock(ABC):
    """Source of the current UTC time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class VirtualClock(Clock):
    """Settable clock that only moves when told to.

    Args:
        start: initial time, defaults to the current wall-clock time
    """

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._lock = threading.RLock()
        if start is None:
            start = datetime.now(timezone.utc)
        elif start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._now = start

        logger.info("virtual_clock_initialized", now=self._now.isoformat())

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, moment: datetime) -> None:
        """Jump to an arbitrary moment (forwards or backwards)."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        with self._lock:
            self._now = moment

    def advance(
            self,
            days: int = 0,
            hours: int = 0,
            minutes: int = 0,
            seconds: int = 0,
    ) -> datetime:
        """Advance virtual time.

        Returns:
            The new current time

        Raises:
            ValueError: if any value is negative
        """
        if days < 0 or hours < 0 or minutes < 0 or seconds < 0:
            raise ValueError("Cannot advance time backwards, negative values are not allowed.")

        step = timedelta(days=days, hours=hours, minutes=minutes, seconds=seconds)
        with self._lock:
            old_time = self._now
            self._now = old_time + step
            new_time = self._now

        if step:
            logger.info(
                "time_advanced",
                old_time=old_time.isoformat(),
                new_time=new_time.isoformat(),
                seconds_advanced=step.total_seconds(),
            )
        return new_time
