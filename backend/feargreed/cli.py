"""Command line entry point: fetch one domain series and print its JSON payload."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from . import services
from .client import CoinStatsClient
from .config import config_value, load_config
from .contracts import PAYLOAD_BUILDERS, build_payload, payload_json
from .logging_config import new_request_id, setup_logging
from .models import DomainResult

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="feargreed", description="Fetch crypto market-sentiment series from CoinStats")
    parser.add_argument("domain", choices=sorted(PAYLOAD_BUILDERS), help="Series to fetch")
    parser.add_argument("--config", default=None, help="Path to a YAML configuration file")
    parser.add_argument("--period", default=None, help="Chart period (fear-greed-chart, btc-dominance)")
    parser.add_argument("--coin", default=services.DEFAULT_RAINBOW_COIN, help="Rainbow chart coin")
    parser.add_argument("--limit", type=int, default=None, help="Coins per page")
    parser.add_argument("--page", type=int, default=1, help="Coins page")
    parser.add_argument("--currency", default="USD", help="Quote currency (coins, markets)")
    parser.add_argument("--log-level", default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (0 for compact)")
    return parser


async def fetch_domain(domain: str, args: argparse.Namespace, config: Dict[str, Any]) -> DomainResult:
    async with CoinStatsClient.from_config(config) as client:
        fetch_json = client.fetch_json
        if domain == "fear-greed":
            return await services.get_fear_greed_now(fetch_json)
        if domain == "fear-greed-chart":
            return await services.get_fear_greed_chart(fetch_json, args.period or "1y")
        if domain == "btc-dominance":
            return await services.get_btc_dominance(fetch_json, args.period)
        if domain == "rainbow":
            return await services.get_rainbow(fetch_json, args.coin)
        if domain == "coins":
            return await services.get_coins(
                fetch_json,
                limit=args.limit,
                page=args.page,
                currency=args.currency,
                config=config,
            )
        if domain == "markets":
            return await services.get_market_overview(fetch_json, args.currency)
    raise ValueError(f"Unknown domain: {domain}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    setup_logging(
        level=args.log_level or config_value(config, "logging.level", "INFO"),
        fmt=config_value(config, "logging.format", "text"),
    )
    new_request_id()

    result = asyncio.run(fetch_domain(args.domain, args, config))
    if not result.is_live:
        logger.warning("Serving fallback %s data: %s", args.domain, result.error)

    payload = payload_json(build_payload(args.domain, result))
    json.dump(payload, sys.stdout, indent=args.indent or None)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
