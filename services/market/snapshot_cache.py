# services/market/snapshot_cache.py
"""
TTL-bound, stale-on-error cache for a single market snapshot.

get():
  1) snapshot present and younger than ttl       -> CACHED
  2) no API key                                   -> UNCONFIGURED (not an error)
  3) refresh ok                                   -> FRESH (snapshot replaced)
  4) refresh failed, previous snapshot available  -> STALE (any age)
  5) refresh failed, nothing cached               -> MarketDataFetchError

State lives on the instance; there is no eviction. Concurrent callers during
an in-flight refresh each run their own refresh.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from services.market.errors import ApiKeyNotConfigured, MarketDataFetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]
Refresher = Callable[[float], Awaitable[T]]


class CacheStatus(str, Enum):
    FRESH = "fresh"
    CACHED = "cached"
    STALE = "stale"
    UNCONFIGURED = "unconfigured"


@dataclass(frozen=True)
class CacheResult(Generic[T]):
    status: CacheStatus
    value: Optional[T] = None

    @property
    def cached(self) -> bool:
        return self.status in (CacheStatus.CACHED, CacheStatus.STALE)

    @property
    def configured(self) -> bool:
        return self.status != CacheStatus.UNCONFIGURED


class SnapshotCache(Generic[T]):
    def __init__(
        self,
        name: str,
        *,
        ttl_sec: float,
        refresh: Refresher,
        is_configured: Callable[[], bool],
        clock: Clock = time.time,
    ) -> None:
        self.name = name
        self.ttl_sec = float(ttl_sec)
        self._refresh = refresh
        self._is_configured = is_configured
        self._clock = clock
        self._snapshot: Optional[T] = None
        self._fetched_at: float = 0.0

    @property
    def fetched_at(self) -> float:
        return self._fetched_at

    def peek(self) -> Optional[T]:
        return self._snapshot

    def age_sec(self, now: Optional[float] = None) -> Optional[float]:
        if self._snapshot is None:
            return None
        return (self._clock() if now is None else now) - self._fetched_at

    def is_fresh(self, now: Optional[float] = None) -> bool:
        age = self.age_sec(now)
        return age is not None and age < self.ttl_sec

    async def get(self) -> CacheResult[T]:
        now = self._clock()

        if self.is_fresh(now):
            logger.debug("%s cache hit age_sec=%.0f", self.name, now - self._fetched_at)
            return CacheResult(CacheStatus.CACHED, self._snapshot)

        if not self._is_configured():
            logger.info("%s refresh skipped: API key not configured", self.name)
            return CacheResult(CacheStatus.UNCONFIGURED)

        try:
            fresh = await self._refresh(now)
        except ApiKeyNotConfigured:
            return CacheResult(CacheStatus.UNCONFIGURED)
        except Exception as e:
            if self._snapshot is not None:
                logger.warning(
                    "%s refresh failed, serving stale snapshot age_sec=%.0f: %s",
                    self.name, now - self._fetched_at, e,
                )
                return CacheResult(CacheStatus.STALE, self._snapshot)
            logger.error("%s refresh failed with no cached snapshot: %s", self.name, e)
            raise MarketDataFetchError(str(e) or f"Failed to fetch {self.name}") from e

        # single assignment pair; nothing awaits in between
        self._snapshot = fresh
        self._fetched_at = now
        logger.info("%s snapshot refreshed", self.name)
        return CacheResult(CacheStatus.FRESH, fresh)

    def clear(self) -> None:
        self._snapshot = None
        self._fetched_at = 0.0
