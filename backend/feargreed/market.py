"""Global market overview (total cap, volume, BTC dominance) extraction."""
from __future__ import annotations

from typing import Any

from .extractors import first_number
from .models import MarketOverview

MARKET_CAP_FIELDS = ("marketCap", "totalMarketCap", "marketcap", "marketCapUsd", "globalMarketCap")
MARKET_CAP_CHANGE_FIELDS = (
    "marketCapChange24h",
    "marketCapPercentChange24h",
    "marketCap24hChange",
    "marketCapChangePct24h",
    "marketCapChange",
    "marketcapChange",
    "marketCapChangePercent",
)
VOLUME_FIELDS = ("volume24h", "total24hVolume", "volume", "volumeUsd")
VOLUME_CHANGE_FIELDS = (
    "volumeChange24h",
    "volume24hChange",
    "volumeChangePct24h",
    "volumePercentChange24h",
    "volumeChange",
    "volumeChangePercent",
)
BTC_DOMINANCE_FIELDS = (
    "bitcoinDominance",
    "btcDominance",
    "bitcoinDominancePercentage",
    "bitcoinDominancePercent",
)
BTC_DOMINANCE_CHANGE_FIELDS = (
    "bitcoinDominanceChange24h",
    "btcDominanceChange24h",
    "btcDominanceChange24H",
    "bitcoinDominanceChange24H",
    "bitcoinDominanceChangePct24h",
    "bitcoinDominanceChangePercent",
    "bitcoinDominanceChange",
    "btcDominanceChange",
    "btcDominanceChangePercent",
)
UPDATED_AT_FIELDS = ("updatedAt", "updated_at", "lastUpdated", "timestamp", "time")


def extract_market_overview(raw: Any) -> MarketOverview:
    if not isinstance(raw, dict):
        return MarketOverview()
    container = raw["result"] if isinstance(raw.get("result"), dict) else raw
    source = container.get("source")
    return MarketOverview(
        market_cap=first_number(container, MARKET_CAP_FIELDS),
        market_cap_change_24h=first_number(container, MARKET_CAP_CHANGE_FIELDS),
        volume_24h=first_number(container, VOLUME_FIELDS),
        volume_change_24h=first_number(container, VOLUME_CHANGE_FIELDS),
        bitcoin_dominance=first_number(container, BTC_DOMINANCE_FIELDS),
        bitcoin_dominance_change_24h=first_number(container, BTC_DOMINANCE_CHANGE_FIELDS),
        updated_at=first_number(container, UPDATED_AT_FIELDS),
        source=source if isinstance(source, str) else None,
    )
