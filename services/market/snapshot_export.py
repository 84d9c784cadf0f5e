# services/market/snapshot_export.py
"""
Offline active/inactive classification of every icon symbol.

Build-time counterpart of /api/market/active-coins: smaller batches, a much
longer delay, and a one-symbol-at-a-time retry when CoinMarketCap rejects a
batch. Output is three static JSON files meant to be committed by hand.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Union

import httpx

from services.market.coinmarketcap_client import CoinMarketCapClient
from services.market.errors import CoinMarketCapError
from services.market.rate_limiter import IntervalRateLimiter
from utils.symbols import chunk, normalize_symbol

logger = logging.getLogger(__name__)

OFFLINE_BATCH_SIZE = 10
OFFLINE_DELAY_SEC = 2.5

ALL_COINS_FILE = "all-coins.json"
ACTIVE_COINS_FILE = "active-coins.json"
INACTIVE_COINS_FILE = "inactive-coins.json"


@dataclass
class Classification:
    active: Set[str] = field(default_factory=set)
    inactive: Set[str] = field(default_factory=set)
    successful_calls: int = 0
    failed_calls: int = 0

    @property
    def total(self) -> int:
        return len(self.active) + len(self.inactive)


def _active_symbols(rows) -> Set[str]:
    return {
        normalize_symbol(r.get("symbol"))
        for r in rows
        if r.get("is_active") == 1 and r.get("symbol")
    }


async def _retry_individually(
    cmc: CoinMarketCapClient,
    batch: Sequence[str],
    limiter: IntervalRateLimiter,
    out: Classification,
) -> None:
    for symbol in batch:
        await limiter.wait()
        try:
            rows = await cmc.fetch_active_map([symbol])
        except (CoinMarketCapError, httpx.HTTPError) as e:
            out.inactive.add(symbol)
            logger.info("  %s failed/invalid: %s", symbol, e)
            continue

        if _active_symbols(rows):
            out.active.add(symbol)
            logger.info("  %s is active", symbol)
        else:
            out.inactive.add(symbol)


async def classify_symbols(
    cmc: CoinMarketCapClient,
    symbols: Sequence[str],
    *,
    batch_size: int = OFFLINE_BATCH_SIZE,
    limiter: Optional[IntervalRateLimiter] = None,
) -> Classification:
    limiter = limiter or IntervalRateLimiter(OFFLINE_DELAY_SEC)
    batches = chunk(symbols, batch_size)
    out = Classification()

    for i, batch in enumerate(batches, start=1):
        await limiter.wait()
        logger.info("[%d/%d] checking: %s", i, len(batches), ",".join(batch)[:50])
        try:
            rows = await cmc.fetch_active_map(batch)
        except CoinMarketCapError as e:
            out.failed_calls += 1
            logger.warning("batch failed status=%s, retrying individually", e.status_code)
            await _retry_individually(cmc, batch, limiter, out)
            continue
        except httpx.HTTPError as e:
            out.failed_calls += 1
            logger.error("batch error: %s", e)
            out.inactive.update(batch)
            continue

        found = _active_symbols(rows)
        out.active.update(found)
        # anything we asked about and didn't get back as active is inactive
        out.inactive.update(s for s in batch if s not in found)
        out.successful_calls += 1
        logger.info("  found %d active (out of %d returned)", len(found), len(rows))

    return out


def _snapshot(timestamp: str, symbols) -> Dict[str, object]:
    ordered = sorted(symbols)
    return {"timestamp": timestamp, "total": len(ordered), "symbols": ordered}


def write_snapshots(
    out_dir: Union[str, Path],
    all_symbols: Sequence[str],
    result: Classification,
    *,
    now: Optional[datetime] = None,
) -> List[Path]:
    target = Path(out_dir)
    target.mkdir(parents=True, exist_ok=True)
    timestamp = (now or datetime.now(timezone.utc)).isoformat()

    files = {
        ALL_COINS_FILE: _snapshot(timestamp, all_symbols),
        ACTIVE_COINS_FILE: _snapshot(timestamp, result.active),
        INACTIVE_COINS_FILE: _snapshot(timestamp, result.inactive),
    }

    written: List[Path] = []
    for name, payload in files.items():
        path = target / name
        path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        written.append(path)
    return written
