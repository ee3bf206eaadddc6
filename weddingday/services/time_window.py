"""Day-of timeline window.

The editable timeline for a wedding spans from 03:00 venue-local time on the
wedding date to 03:00 venue-local time on the following calendar date. The
window is computed in the venue's timezone and expressed as UTC instants, so
a DST transition inside the span yields a 23 or 25 hour window.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from weddingday.config import get_settings
from weddingday.exceptions import InvalidTimezoneError, InvalidWeddingDateError


@dataclass(frozen=True)
class TimelineWindow:
    start_utc: datetime
    end_utc: datetime

    @property
    def duration(self) -> timedelta:
        return self.end_utc - self.start_utc

    def contains(self, instant: datetime) -> bool:
        return self.start_utc <= instant < self.end_utc


def load_venue_zone(venue_timezone: str) -> ZoneInfo:
    """Resolve an IANA timezone id, raising InvalidTimezoneError if unknown."""
    if not venue_timezone:
        raise InvalidTimezoneError(venue_timezone)
    try:
        return ZoneInfo(venue_timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(venue_timezone) from e


def parse_wedding_date(wedding_date: date | str) -> date:
    if isinstance(wedding_date, datetime):
        return wedding_date.date()
    if isinstance(wedding_date, date):
        return wedding_date
    try:
        return date.fromisoformat(wedding_date)
    except (TypeError, ValueError) as e:
        raise InvalidWeddingDateError(wedding_date) from e


def _local_to_utc(day: date, hour: int, zone: ZoneInfo) -> datetime:
    local = datetime.combine(day, time(hour=hour), tzinfo=zone)
    return local.astimezone(UTC)


def compute_timeline_window(
    wedding_date: date | str,
    venue_timezone: str,
    start_hour: int | None = None,
) -> TimelineWindow:
    """Compute the [start, end) UTC window for a wedding day.

    Args:
        wedding_date: Venue-local calendar date (date or YYYY-MM-DD)
        venue_timezone: IANA timezone id of the venue
        start_hour: Local hour the window opens; defaults to settings

    Returns:
        TimelineWindow with both bounds in UTC

    Raises:
        InvalidWeddingDateError: If the date cannot be parsed
        InvalidTimezoneError: If the timezone id is unknown
    """
    if start_hour is None:
        start_hour = get_settings().timeline_window_start_hour
    day = parse_wedding_date(wedding_date)
    zone = load_venue_zone(venue_timezone)
    try:
        next_day = day + timedelta(days=1)
    except OverflowError as e:
        raise InvalidWeddingDateError(wedding_date) from e

    return TimelineWindow(
        start_utc=_local_to_utc(day, start_hour, zone),
        end_utc=_local_to_utc(next_day, start_hour, zone),
    )
