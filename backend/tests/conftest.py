"""
Shared pytest fixtures for the feargreed data core tests.
"""

import logging

import pytest

from feargreed.errors import UpstreamError


# ============================================================================
# Fake upstream
# ============================================================================

class FakeUpstream:
    """Stands in for ``CoinStatsClient.fetch_json``.

    ``routes`` maps a path to a payload, an exception instance (raised), or a
    callable taking the search params and returning either. Unknown paths
    answer 404.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    async def fetch_json(self, path, search_params=None):
        params = dict(search_params or {})
        self.calls.append((path, params))
        handler = self.routes.get(path)
        if handler is None:
            raise UpstreamError(404, "Not Found", None)
        if callable(handler):
            handler = handler(params)
        if isinstance(handler, BaseException):
            raise handler
        return handler

    def params_for(self, path):
        return [params for called, params in self.calls if called == path]


@pytest.fixture
def upstream():
    return FakeUpstream()


# ============================================================================
# Mock Data Fixtures
# ============================================================================

@pytest.fixture
def mock_fear_greed_now_response():
    """CoinStats /insights/fear-and-greed response."""
    return {
        "name": "Fear and Greed Index",
        "now": {
            "value": 65,
            "value_classification": "Greed",
            "timestamp": 1703232000,
            "update_time": "2023-12-22T08:00:00.000Z",
        },
        "yesterday": {
            "value": 60,
            "value_classification": "Greed",
            "timestamp": 1703145600,
        },
        "lastWeek": {
            "value": 44,
            "value_classification": "Fear",
            "timestamp": 1702627200,
        },
    }


@pytest.fixture
def mock_fear_greed_chart_response():
    """Fear & greed chart in tuple form, timestamps in milliseconds."""
    return {
        "points": [
            [1703145600000, 60],
            [1703059200000, 55],
            [1703232000000, 65],
        ]
    }


@pytest.fixture
def mock_btc_chart_response():
    """BTC price chart, ``[ts, price, ...]`` rows like /coins/bitcoin/charts."""
    return [
        [1703059200, 43000.0, 1, 1],
        [1703145600, 43500.0, 1, 1],
        [1703232000, 44000.0, 1, 1],
    ]


@pytest.fixture
def mock_coins_page():
    """Factory for a /coins page envelope."""
    def _page(ids, page=1, has_next=True, page_count=None):
        return {
            "result": [
                {"id": cid, "symbol": cid[:3].upper(), "name": cid.title(), "rank": i + 1, "price": 100.0 + i}
                for i, cid in enumerate(ids)
            ],
            "meta": {
                "page": page,
                "limit": len(ids),
                "itemCount": 1000,
                "pageCount": page_count or 100,
                "hasPreviousPage": page > 1,
                "hasNextPage": has_next,
            },
        }
    return _page


@pytest.fixture
def feargreed_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="feargreed")
    return caplog


@pytest.fixture
def restore_root_logger():
    """setup_logging() replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)
