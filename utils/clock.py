"""
Time source for the notification engine.

Every window boundary (start of day, reminder look-ahead, overdue look-back)
is computed from a ``Clock`` so tests can pin ``now`` and deployments can pick
the timezone that defines a calendar day. MongoDB stores naive UTC datetimes,
so the storage helpers live here too.
"""

import os
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import config
from logging_config import get_logger

logger = get_logger("clock")

LOCALTIME_PATH = "/etc/localtime"


def local_timezone() -> tzinfo:
    """
    Server local timezone with its DST rules.

    Tries ``TZ`` as an IANA key, then the system zone file. Only when neither
    resolves does it fall back to the current fixed UTC offset.
    """
    name = os.environ.get("TZ", "").lstrip(":")
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"TZ={name!r} is not an IANA zone, trying {LOCALTIME_PATH}")

    try:
        with open(LOCALTIME_PATH, "rb") as zone_file:
            return ZoneInfo.from_file(zone_file, key="localtime")
    except (OSError, ValueError):
        logger.warning("Local zone rules unavailable, using the current UTC offset")
        return datetime.now().astimezone().tzinfo


class Clock:
    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz or local_timezone()

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock(Clock):
    """Clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime, tz: Optional[tzinfo] = None):
        super().__init__(tz or timezone.utc)
        self.instant = as_aware(instant)

    def now(self) -> datetime:
        return self.instant.astimezone(self.tz)

    def set(self, instant: datetime):
        self.instant = as_aware(instant)

    def advance(self, **kwargs):
        self.instant = self.instant + timedelta(**kwargs)


def get_clock() -> Clock:
    """Build the process clock from SCHEDULER_TIMEZONE (empty = server local)."""
    if config.SCHEDULER_TIMEZONE:
        return Clock(ZoneInfo(config.SCHEDULER_TIMEZONE))
    return Clock()


# --- Calendar helpers ---

def start_of_day(now: datetime) -> datetime:
    """Midnight of ``now``'s calendar day, in ``now``'s timezone."""
    return datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)


def start_of_next_day(now: datetime) -> datetime:
    return datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)


# --- Storage helpers ---

def as_aware(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC (the driver's default representation)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_storage(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return as_aware(value).astimezone(timezone.utc).replace(tzinfo=None)


def from_storage(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return as_aware(value)


def document_to_storage(document: dict) -> dict:
    """Return a copy of ``document`` with every top-level datetime converted to naive UTC."""
    return {
        key: to_storage(value) if isinstance(value, datetime) else value
        for key, value in document.items()
    }
