"""
Civil time <-> UTC conversion for the single configured scheduling zone.

All stored instants are aware UTC datetimes. Slot generation and work-hour
checks happen in local civil time; every conversion between the two goes
through ``TimeZoneNormalizer``.
"""

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from slotbook.core.errors import ConfigurationError, InvalidInput

END_OF_DAY = time(23, 59, 59, 999000)


class TimeZoneNormalizer:
    def __init__(self, tz_name: str = "UTC") -> None:
        try:
            self.tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown time zone: {tz_name!r}") from e
        self.tz_name = tz_name

    def __repr__(self) -> str:
        return f"TimeZoneNormalizer({self.tz_name!r})"

    def localize(self, d: date, t: time) -> datetime:
        """Attach the configured zone to a civil date/time (fold=0 for ambiguous times)."""
        return datetime.combine(d, t, tzinfo=self.tz)

    def to_utc(self, d: date, t: time) -> datetime:
        return self.localize(d, t).astimezone(UTC)

    def to_local(self, instant: datetime) -> datetime:
        return ensure_utc(instant).astimezone(self.tz)

    def day_bounds_utc(self, d: date) -> tuple[datetime, datetime]:
        """
        UTC instants for local 00:00:00.000 and 23:59:59.999 of civil date ``d``.

        Each boundary resolves its own UTC offset, so a day containing a DST
        change still maps to the right instants.
        """
        return self.to_utc(d, time.min), self.to_utc(d, END_OF_DAY)

    def range_bounds_utc(self, start_date: date, end_date: date) -> tuple[datetime, datetime]:
        """UTC window from local start of ``start_date`` to local end of ``end_date``."""
        return self.day_bounds_utc(start_date)[0], self.day_bounds_utc(end_date)[1]

    def local_date(self, instant: datetime) -> date:
        return self.to_local(instant).date()

    def exists(self, d: date, t: time) -> bool:
        """False for wall-clock times skipped by a DST jump (e.g. 02:30 on spring-forward day)."""
        local = self.localize(d, t)
        return local.astimezone(UTC).astimezone(self.tz).replace(tzinfo=None) == local.replace(tzinfo=None)


def ensure_utc(dt: datetime) -> datetime:
    """Aware datetime in UTC. Naive values are taken to already be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return ensure_utc(dt).replace(tzinfo=None)


def parse_civil_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise InvalidInput(
            f"{field} must be a date in YYYY-MM-DD format",
            details={"field": field, "value": value},
        ) from e


def iter_days(start_date: date, end_date: date):
    """Each civil date from start_date to end_date inclusive; empty if reversed."""
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)
