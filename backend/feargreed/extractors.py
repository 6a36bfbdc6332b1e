"""Flatten loosely-shaped upstream payloads into sorted point series.

The upstream API wraps its arrays differently per endpoint and version
(``{"points": [...]}``, ``{"result": {"chart": [...]}}``, a bare list, ...)
and sends each element either as a ``[timestamp, value]`` tuple or as a
record whose field names vary. Each domain therefore declares:

* an ordered table of *candidate accessors*; every accessor looks at the raw
  payload and returns the arrays it recognises (possibly none);
* an element parser that accepts both tuple and record form and returns a
  point or ``None``.

All recognised arrays are concatenated, unusable elements are dropped, and
the result is sorted ascending by time. Duplicate timestamps are kept. An
empty list means nothing usable was found.
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from .coercion import coerce_number, coerce_timestamp, iso_date
from .merge import nearest_index
from .models import (
    DominancePoint,
    FearGreedPoint,
    FearGreedSnapshot,
    PricePoint,
    RainbowPoint,
)

Accessor = Callable[[Any], List[list]]

DAY_SECONDS = 24 * 60 * 60
DEFAULT_FEAR_GREED_NAME = "Fear and Greed Index"


# ----------------------------
# Candidate accessors
# ----------------------------


def root_list(raw: Any) -> List[list]:
    return [raw] if isinstance(raw, list) else []


def key(*path: str) -> Accessor:
    """Accessor for the list found at ``raw[path[0]][path[1]]...``."""

    def accessor(raw: Any) -> List[list]:
        node = raw
        for part in path:
            if not isinstance(node, dict):
                return []
            node = node.get(part)
        return [node] if isinstance(node, list) else []

    accessor.__name__ = "key_" + "_".join(path)
    return accessor


def each_key(child: str) -> Accessor:
    """Accessor for ``raw[<any key>][child]`` lists."""

    def accessor(raw: Any) -> List[list]:
        if not isinstance(raw, dict):
            return []
        found = []
        for value in raw.values():
            if isinstance(value, dict) and isinstance(value.get(child), list):
                found.append(value[child])
        return found

    accessor.__name__ = f"each_key_{child}"
    return accessor


def slots(*names: str, under: Sequence[Optional[str]] = (None,)) -> Accessor:
    """Accessor gathering single records stored under named slots."""

    def accessor(raw: Any) -> List[list]:
        found = []
        for container_key in under:
            container = raw if container_key is None else (
                raw.get(container_key) if isinstance(raw, dict) else None
            )
            if not isinstance(container, dict):
                continue
            records = [container[n] for n in names if isinstance(container.get(n), dict)]
            if records:
                found.append(records)
        return found

    accessor.__name__ = "slots_" + "_".join(names)
    return accessor


FEAR_GREED_NOW_SOURCES: Tuple[Accessor, ...] = (
    slots("now", "yesterday", "lastWeek", "last_week", under=(None, "result", "data")),
    root_list,
    key("data"),
    key("points"),
    key("result"),
)

FEAR_GREED_CHART_SOURCES: Tuple[Accessor, ...] = (
    root_list,
    key("points"),
    key("data"),
    key("chart"),
    key("values"),
    key("result", "points"),
    key("result", "data"),
    key("result", "chart"),
    key("result", "values"),
)

PRICE_CHART_SOURCES: Tuple[Accessor, ...] = (
    root_list,
    key("chart"),
    key("charts"),
    key("data"),
    key("points"),
    key("prices"),
    key("result"),
    key("result", "chart"),
    key("result", "charts"),
    key("result", "data"),
    key("result", "points"),
    key("result", "prices"),
)

DOMINANCE_SOURCES: Tuple[Accessor, ...] = (
    root_list,
    key("data"),
    key("result"),
    key("points"),
    key("dominance"),
    each_key("data"),
)

RAINBOW_SOURCES: Tuple[Accessor, ...] = (
    root_list,
    key("data"),
    key("result"),
    key("points"),
    each_key("data"),
)


def collect_candidate_arrays(raw: Any, accessors: Iterable[Accessor]) -> List[list]:
    arrays: List[list] = []
    for accessor in accessors:
        arrays.extend(accessor(raw))
    return arrays


# ----------------------------
# Field helpers
# ----------------------------


def field_value(obj: dict, name: str) -> Any:
    """Read ``name`` from ``obj``; dotted names walk nested records."""
    node: Any = obj
    for part in name.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def first_number(obj: dict, names: Sequence[str]) -> Optional[float]:
    for name in names:
        number = coerce_number(field_value(obj, name))
        if number is not None:
            return number
    return None


def first_timestamp(obj: dict, names: Sequence[str]) -> Optional[int]:
    for name in names:
        ts = coerce_timestamp(field_value(obj, name))
        if ts is not None:
            return ts
    return None


def first_text(obj: dict, names: Sequence[str]) -> Optional[str]:
    for name in names:
        value = field_value(obj, name)
        if isinstance(value, str) and value:
            return value
    return None


def _tuple_pair(item: Any) -> Optional[Tuple[Any, Any]]:
    if isinstance(item, (list, tuple)) and len(item) >= 2:
        return item[0], item[1]
    return None


TIMESTAMP_FIELDS = ("timestamp", "time", "date", "createdAt")
FEAR_GREED_TIMESTAMP_FIELDS = TIMESTAMP_FIELDS + ("update_time",)
FEAR_GREED_VALUE_FIELDS = ("value", "index", "score")
CLASSIFICATION_FIELDS = ("value_classification", "classification", "valueClassification")
PRICE_FIELDS = ("price", "priceUsd", "price_usd", "btc_price", "price.usd")
DOMINANCE_FIELDS = ("dominance", "percentage", "value")
RAINBOW_PRICE_FIELDS = ("price", "value")
RAINBOW_DATE_FIELDS = ("time", "date", "timestamp")


# ----------------------------
# Element parsers
# ----------------------------


def parse_fear_greed_point(item: Any) -> Optional[FearGreedPoint]:
    pair = _tuple_pair(item)
    if pair is not None:
        ts, value = coerce_timestamp(pair[0]), coerce_number(pair[1])
        if ts is None or value is None:
            return None
        return FearGreedPoint(timestamp=ts, value=value)

    if not isinstance(item, dict):
        return None
    ts = first_timestamp(item, FEAR_GREED_TIMESTAMP_FIELDS)
    value = first_number(item, FEAR_GREED_VALUE_FIELDS)
    if ts is None or value is None:
        return None
    update_time = item.get("update_time")
    return FearGreedPoint(
        timestamp=ts,
        value=value,
        value_classification=first_text(item, CLASSIFICATION_FIELDS),
        price=first_number(item, PRICE_FIELDS),
        update_time=update_time if isinstance(update_time, str) and update_time else None,
    )


def parse_price_point(item: Any) -> Optional[PricePoint]:
    pair = _tuple_pair(item)
    if pair is not None:
        ts, price = coerce_timestamp(pair[0]), coerce_number(pair[1])
    elif isinstance(item, dict):
        ts, price = first_timestamp(item, TIMESTAMP_FIELDS[:3]), first_number(item, PRICE_FIELDS)
    else:
        return None
    if ts is None or price is None:
        return None
    return PricePoint(timestamp=ts, price=price)


def parse_dominance_point(item: Any) -> Optional[DominancePoint]:
    pair = _tuple_pair(item)
    if pair is not None:
        ts, dominance = coerce_timestamp(pair[0]), coerce_number(pair[1])
    elif isinstance(item, dict):
        ts, dominance = first_timestamp(item, TIMESTAMP_FIELDS[:3]), first_number(item, DOMINANCE_FIELDS)
    else:
        return None
    if ts is None or dominance is None:
        return None
    return DominancePoint(timestamp=ts, dominance=dominance)


def _rainbow_date(value: Any) -> Optional[Tuple[int, str]]:
    ts = coerce_timestamp(value)
    if ts is None:
        return None
    if isinstance(value, str) and coerce_number(value) is None:
        return ts, value
    return ts, iso_date(ts)


def parse_rainbow_point(item: Any) -> Optional[Tuple[int, RainbowPoint]]:
    """Return ``(sort_key, point)``; the date string is kept as sent."""
    pair = _tuple_pair(item)
    if pair is not None:
        dated, price = _rainbow_date(pair[0]), coerce_number(pair[1])
    elif isinstance(item, dict):
        price = first_number(item, RAINBOW_PRICE_FIELDS)
        dated = None
        for name in RAINBOW_DATE_FIELDS:
            dated = _rainbow_date(item.get(name))
            if dated is not None:
                break
    else:
        return None
    if dated is None or price is None:
        return None
    return dated[0], RainbowPoint(date=dated[1], price=price)


# ----------------------------
# Extractors
# ----------------------------


def _extract(raw: Any, accessors: Iterable[Accessor], parse: Callable[[Any], Any]) -> list:
    out = []
    for arr in collect_candidate_arrays(raw, accessors):
        for item in arr:
            point = parse(item)
            if point is not None:
                out.append(point)
    return out


def extract_fear_greed_now(raw: Any) -> List[FearGreedPoint]:
    points = _extract(raw, FEAR_GREED_NOW_SOURCES, parse_fear_greed_point)
    return sorted(points, key=lambda p: p.timestamp)


def extract_fear_greed_chart_points(raw: Any) -> List[FearGreedPoint]:
    points = _extract(raw, FEAR_GREED_CHART_SOURCES, parse_fear_greed_point)
    return sorted(points, key=lambda p: p.timestamp)


def extract_price_chart_points(raw: Any) -> List[PricePoint]:
    points = _extract(raw, PRICE_CHART_SOURCES, parse_price_point)
    return sorted(points, key=lambda p: p.timestamp)


def extract_btc_dominance_points(raw: Any) -> List[DominancePoint]:
    points = _extract(raw, DOMINANCE_SOURCES, parse_dominance_point)
    return sorted(points, key=lambda p: p.timestamp)


def extract_rainbow_points(raw: Any) -> List[RainbowPoint]:
    keyed = _extract(raw, RAINBOW_SOURCES, parse_rainbow_point)
    return [point for _, point in sorted(keyed, key=lambda pair: pair[0])]


def build_fear_greed_snapshot(
    points: List[FearGreedPoint],
    name: str = DEFAULT_FEAR_GREED_NAME,
) -> Optional[FearGreedSnapshot]:
    """Pick now / yesterday / last week out of an ascending series.

    ``now`` is the latest point; the other two are the points nearest to
    one day and seven days before it.
    """
    if not points:
        return None
    timestamps = [p.timestamp for p in points]
    now = points[-1]
    yesterday = points[nearest_index(timestamps, now.timestamp - DAY_SECONDS)]
    last_week = points[nearest_index(timestamps, now.timestamp - 7 * DAY_SECONDS)]
    return FearGreedSnapshot(name=name, now=now, yesterday=yesterday, last_week=last_week)


def snapshot_name(raw: Any) -> str:
    if isinstance(raw, dict):
        for container in (raw, raw.get("result"), raw.get("data")):
            if isinstance(container, dict) and isinstance(container.get("name"), str) and container["name"]:
                return container["name"]
    return DEFAULT_FEAR_GREED_NAME
