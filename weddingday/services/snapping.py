"""Snap, minimum-duration and clamp rules for event times.

Every time a user proposes for an event passes through the same fixed
pipeline, on the client before an op is recorded and on the server when the
op is applied:

1. Snap both instants to the nearest minute boundary (exactly 30 s rounds up)
2. Enforce the minimum duration by pushing the end out
3. Clamp both instants into the day-of window

The result must still satisfy ``end > start``; otherwise it is rejected.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from weddingday.config import get_settings
from weddingday.exceptions import InvalidTimeRangeError
from weddingday.schemas.base import as_utc
from weddingday.services.time_window import TimelineWindow

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

END_BEFORE_START_MESSAGE = "Event end must be after start"


@dataclass(frozen=True)
class TimeProcessingResult:
    start_utc: datetime
    end_utc: datetime
    valid: bool
    error: str | None = None


def snap_to_minute(instant: datetime, step_minutes: int | None = None) -> datetime:
    """Round an instant to the nearest ``step_minutes`` boundary; ties round up."""
    if step_minutes is None:
        step_minutes = get_settings().snap_minutes
    step = timedelta(minutes=step_minutes)
    instant = as_utc(instant)
    floor = instant - (instant - _EPOCH) % step
    if instant - floor >= step / 2:
        return floor + step
    return floor


def ensure_min_duration(
    start_utc: datetime, end_utc: datetime, min_minutes: int | None = None
) -> tuple[datetime, datetime]:
    if min_minutes is None:
        min_minutes = get_settings().min_event_duration_minutes
    minimum = timedelta(minutes=min_minutes)
    if end_utc - start_utc < minimum:
        end_utc = start_utc + minimum
    return start_utc, end_utc


def clamp_to_window(
    start_utc: datetime, end_utc: datetime, window: TimelineWindow
) -> tuple[datetime, datetime]:
    return max(start_utc, window.start_utc), min(end_utc, window.end_utc)


def process_event_times(
    start_utc: datetime,
    end_utc: datetime,
    window: TimelineWindow,
    *,
    snap_minutes: int | None = None,
    min_duration_minutes: int | None = None,
) -> TimeProcessingResult:
    """Run proposed event times through snap, minimum duration and clamp.

    Never raises for a bad range; the result carries ``valid=False`` and an
    error message instead.
    """
    start = snap_to_minute(start_utc, snap_minutes)
    end = snap_to_minute(end_utc, snap_minutes)
    start, end = ensure_min_duration(start, end, min_duration_minutes)
    start, end = clamp_to_window(start, end, window)

    if end <= start:
        return TimeProcessingResult(start, end, valid=False, error=END_BEFORE_START_MESSAGE)
    return TimeProcessingResult(start, end, valid=True)


def enforce_event_times(
    start_utc: datetime,
    end_utc: datetime,
    window: TimelineWindow,
    *,
    event_id: str | None = None,
) -> tuple[datetime, datetime]:
    """Like process_event_times, but raise InvalidTimeRangeError when rejected."""
    result = process_event_times(start_utc, end_utc, window)
    if not result.valid:
        raise InvalidTimeRangeError(result.error, event_id=event_id, field="endUtc")
    return result.start_utc, result.end_utc
