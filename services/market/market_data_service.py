# services/market/market_data_service.py
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from config.settings import ACTIVE_SOURCE_LISTING, Settings
from services.icons.icon_catalog import IconCatalog
from services.market.coinmarketcap_client import CoinMarketCapClient
from services.market.errors import (
    API_KEY_NOT_CONFIGURED,
    CoinMarketCapError,
    MarketDataFetchError,
)
from services.market.market_state import MarketDataState
from services.market.models import ActiveSymbolSet, Coin, MarketSnapshot
from services.market.rate_limiter import IntervalRateLimiter
from services.market.snapshot_cache import CacheResult, CacheStatus, SnapshotCache
from utils.symbols import chunk, is_queryable_symbol, normalize_symbol

logger = logging.getLogger(__name__)

TOP_LIMIT = 100

Json = Dict[str, Any]
Envelope = Tuple[int, Json]


def is_listed_active(raw: Dict[str, Any]) -> bool:
    return raw.get("is_active", 1) in (1, True)


class MarketDataService:
    """
    Owns the two process-wide snapshot caches (top-100 listing, active symbol
    set) and the refresh logic behind them.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        cmc: Optional[CoinMarketCapClient] = None,
        icons: Optional[IconCatalog] = None,
        clock: Callable[[], float] = time.time,
        limiter_factory: Optional[Callable[[], IntervalRateLimiter]] = None,
    ) -> None:
        self.settings = settings
        self.cmc = cmc or CoinMarketCapClient(
            settings.cmc_api_key,
            base_url=settings.cmc_base_url,
            timeout_sec=settings.cmc_timeout_sec,
        )
        self.icons = icons or IconCatalog(settings.icons_dir)
        self._limiter_factory = limiter_factory or (
            lambda: IntervalRateLimiter(settings.active_batch_delay_ms / 1000.0)
        )

        self.top100_cache: SnapshotCache[MarketSnapshot] = SnapshotCache(
            "top100",
            ttl_sec=settings.top100_ttl_sec,
            refresh=self.refresh_top100,
            is_configured=lambda: self.cmc.configured,
            clock=clock,
        )
        self.active_cache: SnapshotCache[ActiveSymbolSet] = SnapshotCache(
            "active_coins",
            ttl_sec=settings.active_ttl_sec,
            refresh=self.refresh_active_symbols,
            is_configured=lambda: self.cmc.configured,
            clock=clock,
        )

    # ---------- refresh ----------
    async def refresh_top100(self, now: float) -> MarketSnapshot:
        logger.info("fetching top %d listings from CoinMarketCap", TOP_LIMIT)
        rows = await self.cmc.fetch_top_listings(limit=TOP_LIMIT)
        coins = tuple(Coin.from_cmc(r) for r in rows)
        logger.info("cached %d coins from CoinMarketCap", len(coins))
        return MarketSnapshot(coins=coins, fetched_at=now)

    def queryable_symbols(self) -> List[str]:
        all_symbols = self.icons.symbols()
        queryable = [s for s in all_symbols if is_queryable_symbol(s)]
        skipped = len(all_symbols) - len(queryable)
        if skipped:
            logger.debug("skipping %d non-alphanumeric symbols", skipped)
        return queryable

    async def refresh_active_symbols(self, now: float) -> ActiveSymbolSet:
        symbols = self.queryable_symbols()
        batches = chunk(symbols, self.settings.active_batch_size)
        logger.info(
            "checking active status symbols=%d batches=%d", len(symbols), len(batches)
        )

        limiter = self._limiter_factory()
        active: Set[str] = set()
        api_calls = 0
        failed = 0

        for i, batch in enumerate(batches, start=1):
            await limiter.wait()
            api_calls += 1
            try:
                rows = await self.cmc.fetch_active_map(batch)
            except CoinMarketCapError as e:
                # skip this batch; httpx transport errors abort the refresh
                failed += 1
                logger.error("active batch %d/%d failed status=%s: %s", i, len(batches), e.status_code, e)
                continue

            for row in rows:
                sym = normalize_symbol(row.get("symbol"))
                if sym and is_listed_active(row):
                    active.add(sym)

        if batches and failed == len(batches):
            raise CoinMarketCapError(f"All {failed} active-coin batches failed")

        logger.info(
            "found %d active coins out of %d (%d API calls, %d failed)",
            len(active), len(symbols), api_calls, failed,
        )
        return ActiveSymbolSet(
            symbols=frozenset(active),
            fetched_at=now,
            total_checked=len(symbols),
            api_calls_made=api_calls,
        )

    # ---------- cache reads ----------
    async def get_top100(self) -> CacheResult[MarketSnapshot]:
        return await self.top100_cache.get()

    async def get_active_coins(self) -> CacheResult[ActiveSymbolSet]:
        return await self.active_cache.get()

    # ---------- HTTP envelopes ----------
    async def top100_envelope(self) -> Tuple[Envelope, Optional[CacheStatus]]:
        return await _envelope(self.get_top100(), "Failed to fetch data from CoinMarketCap")

    async def active_coins_envelope(self) -> Tuple[Envelope, Optional[CacheStatus]]:
        return await _envelope(self.get_active_coins(), "Failed to fetch active coins data")

    async def market_state(self) -> MarketDataState:
        """Same view the HTTP client builds, without the HTTP hop."""
        source = self.settings.active_status_source
        if source == ACTIVE_SOURCE_LISTING:
            # is_active comes from the listing; the batched /map refresh is never needed
            top, _ = await self.top100_envelope()
            return MarketDataState.from_envelopes(top[1], None, active_source=source)

        (top, _), (act, _) = await asyncio.gather(
            self.top100_envelope(), self.active_coins_envelope()
        )
        return MarketDataState.from_envelopes(top[1], act[1], active_source=source)

    async def aclose(self) -> None:
        await self.cmc.aclose()


async def _envelope(pending, default_error: str) -> Tuple[Envelope, Optional[CacheStatus]]:
    try:
        result = await pending
    except MarketDataFetchError as e:
        return (500, {"success": False, "error": str(e) or default_error}), None

    if result.status == CacheStatus.UNCONFIGURED:
        return (200, {"success": False, "error": API_KEY_NOT_CONFIGURED}), result.status

    data = result.value.to_dict()
    if result.cached and "apiCallsMade" in data:
        # served from memory: this response cost no upstream calls
        data["apiCallsMade"] = 0
    return (200, {"success": True, "data": data, "cached": result.cached}), result.status
