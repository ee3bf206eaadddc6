"""Tests for venue-local time helpers."""

from datetime import datetime

import pytest

from conftest import utc
from weddingday.services.venue_time import (
    duration_minutes,
    format_duration,
    format_venue_date,
    format_venue_time,
    timezone_abbreviation,
    to_venue_local,
    venue_local_to_utc,
)


class TestVenueTime:
    def test_to_venue_local(self):
        local = to_venue_local(utc(2026, 10, 17, 19, 0), "America/New_York")

        assert (local.hour, local.minute) == (15, 0)

    def test_local_to_utc(self):
        assert venue_local_to_utc(datetime(2026, 10, 17, 15, 0), "America/New_York") == utc(
            2026, 10, 17, 19, 0
        )

    @pytest.mark.parametrize(
        "instant,expected",
        [
            (utc(2026, 10, 17, 19, 30), "3:30 PM"),
            (utc(2026, 10, 17, 7, 0), "3:00 AM"),
            (utc(2026, 10, 17, 16, 5), "12:05 PM"),
            (utc(2026, 10, 18, 4, 0), "12:00 AM"),
        ],
    )
    def test_format_venue_time(self, instant, expected):
        assert format_venue_time(instant, "America/New_York") == expected

    def test_format_venue_date(self):
        assert format_venue_date("2026-10-17") == "Saturday, October 17, 2026"

    def test_timezone_abbreviation(self):
        assert timezone_abbreviation("America/New_York", utc(2026, 10, 17, 12, 0)) == "EDT"
        assert timezone_abbreviation("America/New_York", utc(2026, 12, 17, 12, 0)) == "EST"


class TestDurations:
    def test_duration_minutes(self):
        assert duration_minutes(utc(2026, 10, 17, 19, 0), utc(2026, 10, 17, 20, 30)) == 90

    @pytest.mark.parametrize(
        "minutes,expected",
        [(45, "45 min"), (60, "1 hour"), (120, "2 hours"), (90, "1h 30m")],
    )
    def test_format_duration(self, minutes, expected):
        assert format_duration(minutes) == expected
