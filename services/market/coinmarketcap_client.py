# services/market/coinmarketcap_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from config.settings import clean_api_key
from services.market.errors import ApiKeyNotConfigured, CoinMarketCapError
from utils.common_helpers import safe_json

logger = logging.getLogger(__name__)

LISTINGS_LATEST_PATH = "/v1/cryptocurrency/listings/latest"
MAP_PATH = "/v1/cryptocurrency/map"
API_KEY_HEADER = "X-CMC_PRO_API_KEY"


class CoinMarketCapClient:
    """
    Thin async wrapper over the two CoinMarketCap Pro endpoints we use.

    Non-2xx answers raise CoinMarketCapError (carrying the status code);
    transport failures surface as httpx.HTTPError so callers can tell a
    rejected batch apart from a dead network.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = "https://pro-api.coinmarketcap.com",
        http: Optional[httpx.AsyncClient] = None,
        timeout_sec: float = 20.0,
    ) -> None:
        # placeholder keys from the env template count as unset
        self.api_key = clean_api_key(api_key)
        self.base_url = base_url.rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=httpx.Timeout(timeout_sec, connect=5.0))

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ApiKeyNotConfigured("COINMARKETCAP_API_KEY is not set")
        return {API_KEY_HEADER: self.api_key, "Accept": "application/json"}

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        r = await self._http.get(f"{self.base_url}{path}", params=params, headers=self._headers())
        if r.status_code >= 400:
            raise CoinMarketCapError(
                f"CoinMarketCap API error: {r.status_code} {r.reason_phrase}".strip(),
                status_code=r.status_code,
            )
        data = safe_json(r)
        if data is None:
            raise CoinMarketCapError("CoinMarketCap returned non-JSON", status_code=r.status_code)
        return data

    async def fetch_top_listings(self, limit: int = 100) -> List[Dict[str, Any]]:
        data = await self._get(LISTINGS_LATEST_PATH, {"limit": int(limit)})
        rows = data.get("data")
        if not isinstance(rows, list):
            raise CoinMarketCapError("CoinMarketCap listings payload has no data array")
        return [r for r in rows if isinstance(r, dict)]

    async def fetch_active_map(self, symbols: Sequence[str]) -> List[Dict[str, Any]]:
        """Map entries for `symbols` with listing_status=active (may be empty)."""
        if not symbols:
            return []
        data = await self._get(
            MAP_PATH,
            {"symbol": ",".join(symbols), "listing_status": "active"},
        )
        rows = data.get("data")
        if not isinstance(rows, list):
            return []
        return [r for r in rows if isinstance(r, dict)]

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()
