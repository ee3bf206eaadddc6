"""Conversions between UTC instants and venue-local wall-clock time."""

from datetime import UTC, date, datetime

from weddingday.schemas.base import as_utc
from weddingday.services.time_window import load_venue_zone, parse_wedding_date


def to_venue_local(instant: datetime, venue_timezone: str) -> datetime:
    return as_utc(instant).astimezone(load_venue_zone(venue_timezone))


def venue_local_to_utc(local: datetime, venue_timezone: str) -> datetime:
    """Interpret a naive wall-clock time in the venue timezone and return UTC."""
    if local.tzinfo is None:
        local = local.replace(tzinfo=load_venue_zone(venue_timezone))
    return local.astimezone(UTC)


def format_venue_time(instant: datetime, venue_timezone: str) -> str:
    """Format as e.g. ``3:30 PM`` in the venue's timezone."""
    local = to_venue_local(instant, venue_timezone)
    hour = local.hour % 12 or 12
    return f"{hour}:{local.minute:02d} {'AM' if local.hour < 12 else 'PM'}"


def format_venue_date(wedding_date: date | str) -> str:
    """Format as e.g. ``Saturday, October 17, 2026``."""
    day = parse_wedding_date(wedding_date)
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


def timezone_abbreviation(venue_timezone: str, at: datetime | None = None) -> str:
    at = at or datetime.now(UTC)
    return to_venue_local(at, venue_timezone).tzname() or venue_timezone


def duration_minutes(start_utc: datetime, end_utc: datetime) -> int:
    return int((as_utc(end_utc) - as_utc(start_utc)).total_seconds() // 60)


def format_duration(minutes: int) -> str:
    """Format as ``45 min``, ``1 hour``, ``2 hours`` or ``1h 30m``."""
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours} hour{'s' if hours > 1 else ''}"
    return f"{hours}h {mins}m"
