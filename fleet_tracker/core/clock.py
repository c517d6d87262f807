from datetime import datetime, timedelta, timezone
from typing import Optional, Union

Timestamp = Union[datetime, str]


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """A clock that only moves when told to. Used for tests and batch reads."""

    def __init__(self, at: Timestamp):
        self._at = parse_timestamp(at)

    def now(self) -> datetime:
        return self._at

    def advance(self, **delta) -> datetime:
        self._at = self._at + timedelta(**delta)
        return self._at

    def set(self, at: Timestamp) -> None:
        self._at = parse_timestamp(at)


system_clock = SystemClock()


def parse_timestamp(value: Optional[Timestamp]) -> Optional[datetime]:
    """
    Normalize a timestamp to an aware UTC datetime.

    Accepts datetimes and ISO-8601 strings (a trailing ``Z`` is UTC).
    Naive values are taken as UTC. Unparseable strings raise ValueError.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_now(as_of: Optional[Timestamp] = None, clock=None) -> datetime:
    """Pick the instant a calculation runs at: explicit as_of, then clock, then system time."""
    if as_of is not None:
        return parse_timestamp(as_of)
    return parse_timestamp((clock or system_clock).now())
