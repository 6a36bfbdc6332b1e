"""Async CoinStats client; the only code in the package that talks HTTP."""
from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional
from urllib.parse import urljoin

import aiohttp

from .config import config_value, load_config
from .errors import MissingApiKeyError, UpstreamError

logger = logging.getLogger(__name__)

COINSTATS_BASE_URL = "https://openapiv1.coinstats.app"

SearchParams = Optional[Mapping[str, Any]]
FetchJson = Callable[[str, SearchParams], Awaitable[Any]]


def _param_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def clean_params(search_params: SearchParams) -> Dict[str, str]:
    """Drop ``None`` entries and stringify the rest."""
    if not search_params:
        return {}
    return {k: _param_value(v) for k, v in search_params.items() if v is not None}


def build_url(base_url: str, path: str) -> str:
    return urljoin(base_url.rstrip("/") + "/", path.lstrip("/"))


class CoinStatsClient:
    """Thin wrapper around ``aiohttp`` for the CoinStats open API.

    ``fetch_json(path, search_params)`` resolves with the decoded JSON body on
    2xx and raises :class:`UpstreamError` otherwise. Use it as an async
    context manager, or pass an existing ``aiohttp.ClientSession``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = COINSTATS_BASE_URL,
        timeout_s: float = 10,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = aiohttp.ClientTimeout(total=timeout_s)
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None, **kwargs: Any) -> "CoinStatsClient":
        config = config if config is not None else load_config()
        return cls(
            api_key=config_value(config, "coinstats.api_key") or None,
            base_url=config_value(config, "coinstats.base_url", COINSTATS_BASE_URL),
            timeout_s=float(config_value(config, "coinstats.timeout_seconds", 10)),
            **kwargs,
        )

    async def __aenter__(self) -> "CoinStatsClient":
        self._get_session()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise MissingApiKeyError()
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-API-KEY": self.api_key,
        }

    async def fetch_json(self, path: str, search_params: SearchParams = None) -> Any:
        headers = self._headers()
        url = build_url(self.base_url, path)
        params = clean_params(search_params)
        session = self._get_session()

        start_time = time.time()
        async with session.get(url, params=params, headers=headers) as resp:
            if resp.status < 200 or resp.status >= 300:
                detail = await resp.text()
                logger.warning("CoinStats %s -> %d", path, resp.status)
                raise UpstreamError(resp.status, resp.reason, detail)
            data = await resp.json(content_type=None)

        elapsed = (time.time() - start_time) * 1000
        logger.debug("CoinStats %s ok [fetched in %.0fms]", path, elapsed)
        return data
