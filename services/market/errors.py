# services/market/errors.py
from __future__ import annotations

from typing import Optional

API_KEY_NOT_CONFIGURED = "API_KEY_NOT_CONFIGURED"


class ApiKeyNotConfigured(Exception):
    """No usable CoinMarketCap key. A feature-disabled state, not a failure."""


class CoinMarketCapError(Exception):
    """Upstream answered with a non-success status or an unusable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MarketDataFetchError(Exception):
    """Refresh failed and there is no previous snapshot to fall back on."""
