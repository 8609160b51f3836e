"""Tests for tournamentflow.formatting."""

import pytest

from tournamentflow.formatting import format_address, format_time_ago

NOW = 1_700_000_000.0


class TestFormatTimeAgo:
    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "Just now"),
            (59, "Just now"),
            (60, "1 minute ago"),
            (150, "2 minutes ago"),
            (3600, "1 hour ago"),
            (3 * 3600 + 5, "3 hours ago"),
            (86400, "1 day ago"),
            (10 * 86400, "10 days ago"),
        ],
    )
    def test_buckets(self, seconds, expected):
        assert format_time_ago(NOW - seconds, now=NOW) == expected


class TestFormatAddress:
    def test_shortens(self):
        assert format_address("0x1234567890abcdef") == "0x1234...cdef"

    def test_empty(self):
        assert format_address("") == ""
        assert format_address(None) == ""
