"""Configuration: built-in defaults < YAML file < environment variables."""
from __future__ import annotations

import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "coinstats": {
        "api_key": "",
        "base_url": "https://openapiv1.coinstats.app",
        "timeout_seconds": 10,
    },
    "coins": {
        "default_limit": 10,
        "max_additional_page_fetches": 5,
        "sparkline_batch_size": 20,
        "sparkline_max_points": 60,
        "sparkline_period": "1w",
        "sparkline_interval": "1h",
    },
    "logging": {
        "level": "INFO",
        "format": "text",
    },
}

# env var -> (dotted config path, caster)
ENV_OVERRIDES = {
    "COINSTATS_API_KEY": ("coinstats.api_key", str),
    "COINSTATS_BASE_URL": ("coinstats.base_url", str),
    "COINSTATS_TIMEOUT_SECONDS": ("coinstats.timeout_seconds", float),
    "MAX_ADDITIONAL_PAGE_FETCHES": ("coins.max_additional_page_fetches", int),
    "SPARKLINE_BATCH_SIZE": ("coins.sparkline_batch_size", int),
    "SPARKLINE_MAX_POINTS": ("coins.sparkline_max_points", int),
    "FEARGREED_LOG_LEVEL": ("logging.level", str),
    "LOG_FORMAT": ("logging.format", str),
}


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _config_candidates() -> list:
    here = os.path.dirname(os.path.abspath(__file__))
    candidates = []
    if os.environ.get("FEARGREED_CONFIG"):
        candidates.append(os.environ["FEARGREED_CONFIG"])
    candidates.extend([
        os.path.join(here, "..", "feargreed_config.yaml"),
        os.path.join(os.getcwd(), "backend", "feargreed_config.yaml"),
        os.path.join(os.getcwd(), "feargreed_config.yaml"),
    ])
    return candidates


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _merge(base[k], v)
        else:
            base[k] = v
    return base


def _set_path(config: Dict[str, Any], path: str, value: Any) -> None:
    node = config
    parts = path.split(".")
    for part in parts[:-1]:
        node = node.setdefault(part, {})
    node[parts[-1]] = value


def load_config(path: Optional[str] = None, env: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    config = copy.deepcopy(DEFAULT_CONFIG)

    for p in ([path] if path else _config_candidates()):
        if not os.path.isfile(p):
            continue
        try:
            _merge(config, _read_yaml(p))
            logger.info("Loaded feargreed config from: %s", p)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Failed to load config from %s: %s", p, e)
            continue
        break

    env = os.environ if env is None else env
    for var, (dotted, cast) in ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw is None or raw == "":
            continue
        try:
            _set_path(config, dotted, cast(raw))
        except ValueError:
            logger.warning("Ignoring %s=%r: not a valid %s", var, raw, cast.__name__)
    return config


def config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    node: Any = config
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node
