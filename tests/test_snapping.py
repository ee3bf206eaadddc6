"""Tests for snap, minimum duration and clamp rules."""

from datetime import timedelta

import pytest

from conftest import utc
from weddingday.exceptions import InvalidTimeRangeError
from weddingday.services.snapping import (
    END_BEFORE_START_MESSAGE,
    clamp_to_window,
    enforce_event_times,
    ensure_min_duration,
    process_event_times,
    snap_to_minute,
)


class TestSnapToMinute:
    def test_rounds_down_below_half_minute(self):
        assert snap_to_minute(utc(2026, 10, 17, 19, 0, 29)) == utc(2026, 10, 17, 19, 0)

    def test_rounds_up_from_half_minute(self):
        assert snap_to_minute(utc(2026, 10, 17, 19, 0, 30)) == utc(2026, 10, 17, 19, 1)

    def test_drops_microseconds(self):
        value = utc(2026, 10, 17, 19, 5).replace(microsecond=400_000)

        assert snap_to_minute(value) == utc(2026, 10, 17, 19, 5)

    def test_rolls_over_hour(self):
        assert snap_to_minute(utc(2026, 10, 17, 19, 59, 45)) == utc(2026, 10, 17, 20, 0)

    def test_larger_step(self):
        assert snap_to_minute(utc(2026, 10, 17, 19, 7), step_minutes=5) == utc(2026, 10, 17, 19, 5)
        assert snap_to_minute(utc(2026, 10, 17, 19, 8), step_minutes=5) == utc(2026, 10, 17, 19, 10)


class TestMinDurationAndClamp:
    def test_extends_short_event(self):
        start = utc(2026, 10, 17, 19, 0)

        assert ensure_min_duration(start, start) == (start, start + timedelta(minutes=1))

    def test_leaves_long_event(self):
        start, end = utc(2026, 10, 17, 19, 0), utc(2026, 10, 17, 20, 0)

        assert ensure_min_duration(start, end) == (start, end)

    def test_clamp(self, window):
        start, end = clamp_to_window(utc(2026, 10, 17, 5, 0), utc(2026, 10, 18, 9, 0), window)

        assert (start, end) == (window.start_utc, window.end_utc)


class TestProcessEventTimes:
    def test_clamps_early_start_into_window(self, window):
        # 02:45 local is before the 03:00 window start
        result = process_event_times(utc(2026, 10, 17, 6, 45), utc(2026, 10, 17, 8, 0), window)

        assert result.valid
        assert result.start_utc == utc(2026, 10, 17, 7, 0)
        assert result.end_utc == utc(2026, 10, 17, 8, 0)

    def test_snaps_then_enforces_duration(self, window):
        result = process_event_times(
            utc(2026, 10, 17, 19, 0, 10), utc(2026, 10, 17, 19, 0, 20), window
        )

        assert result.valid
        assert result.start_utc == utc(2026, 10, 17, 19, 0)
        assert result.end_utc == utc(2026, 10, 17, 19, 1)

    def test_reversed_range_is_repaired_by_min_duration(self, window):
        result = process_event_times(utc(2026, 10, 17, 20, 0), utc(2026, 10, 17, 19, 0), window)

        assert result.valid
        assert result.end_utc - result.start_utc == timedelta(minutes=1)

    def test_event_entirely_before_window_is_rejected(self, window):
        result = process_event_times(utc(2026, 10, 17, 5, 0), utc(2026, 10, 17, 6, 0), window)

        assert not result.valid
        assert result.error == END_BEFORE_START_MESSAGE

    def test_event_starting_at_window_end_is_rejected(self, window):
        result = process_event_times(window.end_utc, window.end_utc + timedelta(hours=1), window)

        assert not result.valid

    @pytest.mark.parametrize(
        "start,end",
        [
            (utc(2026, 10, 17, 6, 59, 31), utc(2026, 10, 17, 7, 0, 10)),
            (utc(2026, 10, 18, 6, 58, 50), utc(2026, 10, 18, 8, 0)),
            (utc(2026, 10, 17, 12, 17, 29), utc(2026, 10, 17, 12, 17, 31)),
            (utc(2026, 10, 17, 1, 0), utc(2026, 10, 19, 0, 0)),
        ],
    )
    def test_valid_output_is_aligned_and_inside_window(self, window, start, end):
        result = process_event_times(start, end, window)

        assert result.valid
        assert result.start_utc.second == 0 and result.end_utc.second == 0
        assert result.end_utc - result.start_utc >= timedelta(minutes=1)
        assert window.start_utc <= result.start_utc < window.end_utc
        assert window.start_utc < result.end_utc <= window.end_utc

    def test_enforce_raises_with_event_location(self, window):
        with pytest.raises(InvalidTimeRangeError) as exc_info:
            enforce_event_times(
                utc(2026, 10, 17, 5, 0), utc(2026, 10, 17, 6, 0), window, event_id="evt-1"
            )

        assert exc_info.value.location.event_id == "evt-1"
        assert exc_info.value.status_code == 400
