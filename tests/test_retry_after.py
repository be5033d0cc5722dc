"""Tests for Retry-After header parsing"""

import math

import pytest

from pacer.domain.retry_after import format_http_date, parse_retry_after

NOW = 1_700_000_000.0


class TestDeltaSeconds:
    """Tests for the delta-seconds form"""

    def test_integer_seconds(self):
        assert parse_retry_after("120", NOW) == 120.0

    def test_zero_is_immediate_retry(self):
        assert parse_retry_after("0", NOW) == 0.0

    def test_surrounding_whitespace_ignored(self):
        assert parse_retry_after("  5 ", NOW) == 5.0

    def test_large_value(self):
        assert parse_retry_after("86400", NOW) == 86400.0

    def test_too_large_for_float(self):
        """A 400-digit delay is still a delay, just an endless one"""
        assert parse_retry_after("9" * 400, NOW) == math.inf

    def test_too_many_digits_for_int(self):
        assert parse_retry_after("9" * 5000, NOW) == math.inf

    @pytest.mark.parametrize("value", ["-5", "1.5", "+3", "5s", "0x10"])
    def test_not_delta_seconds(self, value):
        """Signed, fractional and suffixed numbers are not delta-seconds"""
        assert parse_retry_after(value, NOW) is None


class TestHttpDate:
    """Tests for the HTTP-date form"""

    def test_future_date_becomes_delay(self):
        assert parse_retry_after(format_http_date(NOW + 30), NOW) == pytest.approx(30.0)

    def test_past_date_is_zero(self):
        assert parse_retry_after(format_http_date(NOW - 10), NOW) == 0.0

    def test_present_date_is_zero(self):
        assert parse_retry_after(format_http_date(NOW), NOW) == 0.0

    def test_fixdate(self):
        # 2023-11-14 22:13:20 UTC is NOW
        assert parse_retry_after("Tue, 14 Nov 2023 22:13:22 GMT", NOW) == pytest.approx(2.0)

    def test_legacy_rfc2822_with_offset(self):
        assert parse_retry_after("Tue, 14 Nov 2023 23:13:25 +0100", NOW) == pytest.approx(5.0)

    def test_zoneless_date_treated_as_utc(self):
        assert parse_retry_after("Tue, 14 Nov 2023 22:13:30 -0000", NOW) == pytest.approx(10.0)


class TestUnusable:
    """Tests for values that yield no usable delay"""

    def test_absent(self):
        assert parse_retry_after(None, NOW) is None

    def test_empty(self):
        assert parse_retry_after("", NOW) is None
        assert parse_retry_after("   ", NOW) is None

    def test_garbage(self):
        assert parse_retry_after("invalid-format-123abc", NOW) is None

    def test_half_a_date(self):
        assert parse_retry_after("Tue, 14 Nov", NOW) is None
