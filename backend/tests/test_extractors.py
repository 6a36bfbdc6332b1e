"""
Tests for payload extraction across the envelope shapes upstream has used.
"""

import json

import pytest

from feargreed.extractors import (
    DAY_SECONDS,
    DEFAULT_FEAR_GREED_NAME,
    build_fear_greed_snapshot,
    extract_btc_dominance_points,
    extract_fear_greed_chart_points,
    extract_fear_greed_now,
    extract_price_chart_points,
    extract_rainbow_points,
    parse_fear_greed_point,
    snapshot_name,
)
from feargreed.models import DominancePoint, FearGreedPoint, PricePoint, RainbowPoint

T0 = 1704067200


# ============================================================================
# Fear & Greed
# ============================================================================

class TestFearGreedNow:

    @pytest.mark.unit
    def test_named_slots_are_collected_in_time_order(self, mock_fear_greed_now_response):
        points = extract_fear_greed_now(mock_fear_greed_now_response)

        assert [p.value for p in points] == [44, 60, 65]
        assert points[-1].value_classification == "Greed"
        assert points[-1].update_time == "2023-12-22T08:00:00.000Z"

    @pytest.mark.unit
    def test_slots_under_result(self):
        raw = {"result": {"now": {"value": "30", "timestamp": str(T0)}}}
        assert extract_fear_greed_now(raw) == [FearGreedPoint(timestamp=T0, value=30.0)]

    @pytest.mark.unit
    def test_update_time_alone_supplies_the_timestamp(self):
        raw = {"now": {"value": 30, "update_time": "2024-01-01T00:00:00.000Z"}}
        points = extract_fear_greed_now(raw)
        assert points[0].timestamp == T0
        assert points[0].update_time == "2024-01-01T00:00:00.000Z"

    @pytest.mark.unit
    def test_data_array_of_records(self):
        raw = {"data": [
            {"value": "65", "value_classification": "Greed", "timestamp": "1703232000"},
            {"value": "20", "classification": "Extreme Fear", "time": 1703145600000},
        ]}
        points = extract_fear_greed_now(raw)
        assert [(p.timestamp, p.value, p.value_classification) for p in points] == [
            (1703145600, 20.0, "Extreme Fear"),
            (1703232000, 65.0, "Greed"),
        ]

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", [None, {}, [], "nope", {"data": "x"}, {"now": {"value": 1}}, 42])
    def test_garbage_yields_nothing(self, raw):
        assert extract_fear_greed_now(raw) == []

    @pytest.mark.unit
    def test_snapshot_name(self):
        assert snapshot_name({"name": "Custom"}) == "Custom"
        assert snapshot_name({"result": {"name": "Nested"}}) == "Nested"
        assert snapshot_name({"name": ""}) == DEFAULT_FEAR_GREED_NAME
        assert snapshot_name([]) == DEFAULT_FEAR_GREED_NAME


class TestFearGreedChart:

    @pytest.mark.unit
    def test_tuple_rows_in_milliseconds(self, mock_fear_greed_chart_response):
        points = extract_fear_greed_chart_points(mock_fear_greed_chart_response)

        assert [p.timestamp for p in points] == [1703059200, 1703145600, 1703232000]
        assert [p.value for p in points] == [55, 60, 65]
        assert all(p.price is None for p in points)

    @pytest.mark.unit
    @pytest.mark.parametrize("envelope", ["points", "data", "chart", "values"])
    def test_top_level_envelopes(self, envelope):
        raw = {envelope: [[T0, 50]]}
        assert extract_fear_greed_chart_points(raw) == [FearGreedPoint(timestamp=T0, value=50)]

    @pytest.mark.unit
    @pytest.mark.parametrize("envelope", ["points", "data", "chart", "values"])
    def test_result_envelopes(self, envelope):
        raw = {"result": {envelope: [{"timestamp": T0, "score": 12, "btc_price": "42000"}]}}
        points = extract_fear_greed_chart_points(raw)
        assert points == [FearGreedPoint(timestamp=T0, value=12.0, price=42000.0)]

    @pytest.mark.unit
    def test_bare_list(self):
        assert len(extract_fear_greed_chart_points([[T0, 1], [T0 + 1, 2]])) == 2

    @pytest.mark.unit
    def test_arrays_from_several_envelopes_are_concatenated(self):
        raw = {"points": [[T0 + 10, 1]], "data": [[T0, 2]]}
        assert [p.value for p in extract_fear_greed_chart_points(raw)] == [2, 1]

    @pytest.mark.unit
    def test_unusable_elements_are_dropped(self):
        raw = {"points": [[T0, 50], [None, 10], ["x", "y"], [T0 + 1], "junk", {"value": 5}, [T0 + 2, "61"]]}
        points = extract_fear_greed_chart_points(raw)
        assert [(p.timestamp, p.value) for p in points] == [(T0, 50), (T0 + 2, 61.0)]

    @pytest.mark.unit
    def test_duplicate_timestamps_are_kept_in_input_order(self):
        raw = {"points": [[T0, 1], [T0, 2]]}
        assert [p.value for p in extract_fear_greed_chart_points(raw)] == [1, 2]

    @pytest.mark.unit
    def test_nested_price_field(self):
        point = parse_fear_greed_point({"date": "2024-01-01", "index": 40, "price": {"usd": 100}})
        assert point.price == 100.0


# ============================================================================
# Price / dominance / rainbow
# ============================================================================

class TestPriceChart:

    @pytest.mark.unit
    def test_extra_tuple_columns_are_ignored(self, mock_btc_chart_response):
        points = extract_price_chart_points(mock_btc_chart_response)
        assert points[0] == PricePoint(timestamp=1703059200, price=43000.0)
        assert len(points) == 3

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", [
        {"chart": [[T0, 1.5]]},
        {"charts": [[T0, 1.5]]},
        {"prices": [{"time": T0, "priceUsd": "1.5"}]},
        {"result": [[T0, 1.5]]},
        {"result": {"chart": [[T0, 1.5]]}},
        {"result": {"prices": [{"date": "2024-01-01T00:00:00Z", "price_usd": 1.5}]}},
    ])
    def test_envelopes_and_field_names(self, raw):
        assert extract_price_chart_points(raw) == [PricePoint(timestamp=T0, price=1.5)]

    @pytest.mark.unit
    def test_created_at_is_not_a_price_timestamp(self):
        assert extract_price_chart_points([{"createdAt": T0, "price": 1}]) == []

    @pytest.mark.unit
    def test_oversized_integer_price_is_dropped(self):
        raw = json.loads("[[1703059200, 1" + "0" * 400 + "], [1703059300, 5]]")
        assert extract_price_chart_points(raw) == [PricePoint(timestamp=1703059300, price=5.0)]


class TestDominance:

    @pytest.mark.unit
    def test_records_sorted_ascending(self):
        raw = {"data": [
            {"timestamp": T0 + DAY_SECONDS, "dominance": "52.1"},
            {"timestamp": T0, "percentage": 51.9},
        ]}
        assert extract_btc_dominance_points(raw) == [
            DominancePoint(timestamp=T0, dominance=51.9),
            DominancePoint(timestamp=T0 + DAY_SECONDS, dominance=52.1),
        ]

    @pytest.mark.unit
    def test_keyed_series_with_data_children(self):
        raw = {"btc": {"data": [[T0, 50]]}, "eth": {"data": [[T0 + 1, 17]]}}
        assert [p.dominance for p in extract_btc_dominance_points(raw)] == [50, 17]

    @pytest.mark.unit
    def test_dominance_envelope(self):
        assert extract_btc_dominance_points({"dominance": [[T0, 49.5]]})[0].dominance == 49.5

    @pytest.mark.unit
    def test_empty(self):
        assert extract_btc_dominance_points({"data": []}) == []


class TestRainbow:

    @pytest.mark.unit
    def test_date_strings_are_kept_verbatim(self):
        raw = {"data": [
            {"date": "2024-02-01", "price": 20},
            {"time": "2024-01-01T00:00:00Z", "value": "10"},
        ]}
        assert extract_rainbow_points(raw) == [
            RainbowPoint(date="2024-01-01T00:00:00Z", price=10.0),
            RainbowPoint(date="2024-02-01", price=20),
        ]

    @pytest.mark.unit
    def test_numeric_times_render_as_iso_dates(self):
        raw = [[T0 * 1000, 42000]]
        assert extract_rainbow_points(raw) == [RainbowPoint(date="2024-01-01", price=42000)]

    @pytest.mark.unit
    def test_unparseable_dates_are_dropped(self):
        raw = {"result": [{"date": "someday", "price": 1}, {"date": "2024-01-01", "price": 2}]}
        assert [p.price for p in extract_rainbow_points(raw)] == [2]

    @pytest.mark.unit
    def test_out_of_range_times_are_dropped(self):
        raw = {"data": [{"time": 1e20, "price": 5}, {"time": "2013-01-01", "price": 6}]}
        assert extract_rainbow_points(raw) == [RainbowPoint(date="2013-01-01", price=6)]


# ============================================================================
# Snapshot
# ============================================================================

class TestSnapshot:

    @pytest.mark.unit
    def test_empty_series_has_no_snapshot(self):
        assert build_fear_greed_snapshot([]) is None

    @pytest.mark.unit
    def test_picks_points_nearest_one_and_seven_days_back(self):
        points = [
            FearGreedPoint(timestamp=T0 + d * DAY_SECONDS, value=float(d))
            for d in range(10)
        ]
        snap = build_fear_greed_snapshot(points, name="Index")

        assert snap.name == "Index"
        assert snap.now.value == 9
        assert snap.yesterday.value == 8
        assert snap.last_week.value == 2

    @pytest.mark.unit
    def test_short_series_clamps_to_earliest(self):
        points = [FearGreedPoint(timestamp=T0, value=1), FearGreedPoint(timestamp=T0 + 3600, value=2)]
        snap = build_fear_greed_snapshot(points)

        assert snap.now.value == 2
        assert snap.yesterday.value == 1
        assert snap.last_week.value == 1

    @pytest.mark.unit
    def test_single_point_fills_every_slot(self):
        only = FearGreedPoint(timestamp=T0, value=50)
        snap = build_fear_greed_snapshot([only])
        assert snap.now == snap.yesterday == snap.last_week == only
        assert snap.to_dict()["lastWeek"]["value"] == 50


# ============================================================================
# Cross-cutting properties
# ============================================================================

ALL_EXTRACTORS = [
    extract_fear_greed_now,
    extract_fear_greed_chart_points,
    extract_price_chart_points,
    extract_btc_dominance_points,
    extract_rainbow_points,
]


class TestExtractorProperties:

    @pytest.mark.unit
    @pytest.mark.parametrize("extract", ALL_EXTRACTORS)
    @pytest.mark.parametrize("raw", [None, 42, "string", {}, [], {"data": None}])
    def test_empty_input_safety(self, extract, raw):
        assert extract(raw) == []

    @pytest.mark.unit
    def test_output_sorted_and_re_extraction_is_stable(self):
        raw = {"points": [[T0 + 300, 3], [T0, 1], [T0 + 100, 2]]}
        points = extract_fear_greed_chart_points(raw)

        assert [p.timestamp for p in points] == sorted(p.timestamp for p in points)
        again = extract_fear_greed_chart_points({"points": [p.to_dict() for p in points]})
        assert again == points

    @pytest.mark.unit
    def test_tuple_and_record_forms_are_equivalent(self):
        as_tuples = {"data": [[T0, 50.5], [T0 + 60, 51]]}
        as_records = {"data": [{"timestamp": T0, "value": 50.5}, {"timestamp": T0 + 60, "value": 51}]}

        assert extract_fear_greed_chart_points(as_tuples) == extract_fear_greed_chart_points(as_records)
        assert extract_btc_dominance_points(as_tuples) == extract_btc_dominance_points(as_records)
        assert extract_price_chart_points({"data": [[T0, 9.5]]}) == extract_price_chart_points(
            {"data": [{"timestamp": T0, "price": 9.5}]}
        )
