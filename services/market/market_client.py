# services/market/market_client.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from config.settings import ACTIVE_SOURCE_LISTING, ACTIVE_SOURCE_SET
from services.market.market_state import MarketDataState

logger = logging.getLogger(__name__)

TOP100_PATH = "/api/market/top100"
ACTIVE_COINS_PATH = "/api/market/active-coins"


def _error_of(body: Any) -> Optional[str]:
    return body.get("error") if isinstance(body, dict) else None


class MarketDataClient:
    """
    Consumer side of the two market endpoints.

    Both requests go out together and are joined (listing_flag mode only
    needs the top-100 one); the result is always a
    MarketDataState, never an exception, so a broken market feed can't take
    the icon grid down with it.
    """

    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        *,
        base_url: str = "http://localhost:8000",
        active_source: str = ACTIVE_SOURCE_SET,
        timeout_sec: float = 30.0,
    ) -> None:
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout_sec)
        self.active_source = active_source

    async def _get_json(self, path: str) -> Any:
        r = await self._http.get(path)
        if r.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"HTTP error! status: {r.status_code}", request=r.request, response=r
            )
        return r.json()

    async def load(self) -> MarketDataState:
        try:
            if self.active_source == ACTIVE_SOURCE_LISTING:
                top, active = await self._get_json(TOP100_PATH), None
            else:
                top, active = await asyncio.gather(
                    self._get_json(TOP100_PATH), self._get_json(ACTIVE_COINS_PATH)
                )
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Failed to load market data: %s", e)
            return MarketDataState.degraded(self.active_source)

        state = MarketDataState.from_envelopes(top, active, active_source=self.active_source)
        if state.error:
            logger.error(
                "Failed to load market data: %s",
                _error_of(top) or _error_of(active),
            )
        elif not state.api_key_configured:
            logger.info("market data API key not configured; filters disabled")
        elif isinstance(active, dict) and active.get("cached") is False:
            calls = (active.get("data") or {}).get("apiCallsMade")
            logger.info("Active coins check: %s API calls made", calls)
        return state

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "MarketDataClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
