"""Error types raised by the upstream client."""
from __future__ import annotations

from typing import Optional


class FearGreedError(RuntimeError):
    """Base class for errors raised by the data core."""


class MissingApiKeyError(FearGreedError):
    """Raised when no CoinStats API key is configured."""

    def __init__(self, env_var: str = "COINSTATS_API_KEY") -> None:
        super().__init__(f"{env_var} is not set")
        self.env_var = env_var


class UpstreamError(FearGreedError):
    """Raised when the upstream API answers with a non-2xx status."""

    def __init__(self, status: int, reason: Optional[str] = None, detail: Optional[str] = None) -> None:
        self.status = status
        self.reason = reason or ""
        self.detail = detail or ""
        super().__init__(
            f"CoinStats request failed ({status} {self.reason}): {self.detail or 'No response body'}"
        )

    @property
    def recoverable(self) -> bool:
        return self.status == 429 or self.status >= 500
