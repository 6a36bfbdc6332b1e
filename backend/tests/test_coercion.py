"""
Tests for scalar coercion of upstream JSON values.
"""

import math

import pytest

from feargreed.coercion import coerce_number, coerce_timestamp, iso_date, iso_datetime


class TestCoerceNumber:

    @pytest.mark.unit
    @pytest.mark.parametrize("value, expected", [
        (42, 42.0),
        (3.5, 3.5),
        ("42.5", 42.5),
        ("  7 ", 7.0),
        ("-1e3", -1000.0),
    ])
    def test_accepts_finite_numbers_and_numeric_strings(self, value, expected):
        assert coerce_number(value) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [
        None, "", "   ", "abc", "12abc", True, False, float("nan"), float("inf"), "inf", [], {}, [1], 10 ** 400,
    ])
    def test_rejects_everything_else(self, value):
        assert coerce_number(value) is None


class TestCoerceTimestamp:

    @pytest.mark.unit
    def test_seconds_pass_through(self):
        assert coerce_timestamp(1704067200) == 1704067200

    @pytest.mark.unit
    def test_milliseconds_are_scaled_and_floored(self):
        assert coerce_timestamp(1704067200999) == 1704067200

    @pytest.mark.unit
    def test_numeric_strings_are_numbers(self):
        assert coerce_timestamp("1704067200") == 1704067200
        assert coerce_timestamp("1704067200000") == 1704067200

    @pytest.mark.unit
    def test_fractional_seconds_floor(self):
        assert coerce_timestamp(1704067200.9) == 1704067200

    @pytest.mark.unit
    @pytest.mark.parametrize("text", [
        "2024-01-01T00:00:00Z",
        "2024-01-01T00:00:00.000Z",
        "2024-01-01T00:00:00+00:00",
        "2024-01-01",
    ])
    def test_iso_dates_parse_as_utc(self, text):
        assert coerce_timestamp(text) == 1704067200

    @pytest.mark.unit
    def test_offset_is_honoured(self):
        assert coerce_timestamp("2024-01-01T02:00:00+02:00") == 1704067200

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [None, "", "not a date", True, -5, float("nan"), {"ts": 1}])
    def test_unusable_values(self, value):
        assert coerce_timestamp(value) is None

    @pytest.mark.unit
    def test_never_raises_on_odd_input(self):
        for value in (object(), b"123", "9999-99-99", math.inf, [1704067200], 10 ** 400, 1e20):
            assert coerce_timestamp(value) is None

    @pytest.mark.unit
    def test_beyond_datetime_range_is_rejected(self):
        assert coerce_timestamp(1e20) is None
        assert coerce_timestamp(-1e20) is None
        assert coerce_timestamp(253402300799000) == 253402300799
        assert coerce_timestamp(253402300800000) is None


class TestIsoRendering:

    @pytest.mark.unit
    def test_iso_date(self):
        assert iso_date(1704067200) == "2024-01-01"

    @pytest.mark.unit
    def test_iso_datetime_has_milliseconds_and_z(self):
        assert iso_datetime(1704067200) == "2024-01-01T00:00:00.000Z"
        assert iso_datetime(1704067200.25) == "2024-01-01T00:00:00.250Z"
