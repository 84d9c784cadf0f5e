"""
Update the static active/inactive coin snapshots from CoinMarketCap.

Run manually, then commit the generated files:
    python scripts/update_active_coins.py --icons-dir public/icons --out-dir public/data
"""
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config.logging_config import configure_logging  # noqa: E402
from config.settings import get_settings  # noqa: E402
from services.icons.icon_catalog import IconCatalog  # noqa: E402
from services.market.coinmarketcap_client import CoinMarketCapClient  # noqa: E402
from services.market.rate_limiter import IntervalRateLimiter  # noqa: E402
from services.market.snapshot_export import (  # noqa: E402
    OFFLINE_BATCH_SIZE,
    OFFLINE_DELAY_SEC,
    classify_symbols,
    write_snapshots,
)
from utils.symbols import is_queryable_symbol  # noqa: E402

logger = logging.getLogger("update_active_coins")


async def run(icons_dir: Path, out_dir: Path, batch_size: int, delay_sec: float) -> int:
    settings = get_settings()
    if not settings.api_key_configured:
        logger.error("COINMARKETCAP_API_KEY not configured (.env / .env.local)")
        return 1

    symbols = [s for s in IconCatalog(icons_dir).symbols() if is_queryable_symbol(s)]
    batches = -(-len(symbols) // batch_size) if symbols else 0
    logger.info("total symbols=%d batch_size=%d api_calls=%d", len(symbols), batch_size, batches)
    logger.info("estimated time ~%d min", -(-int(batches * delay_sec) // 60))

    cmc = CoinMarketCapClient(
        settings.cmc_api_key,
        base_url=settings.cmc_base_url,
        timeout_sec=settings.cmc_timeout_sec,
    )
    try:
        result = await classify_symbols(
            cmc, symbols, batch_size=batch_size, limiter=IntervalRateLimiter(delay_sec)
        )
    finally:
        await cmc.aclose()

    logger.info(
        "summary successful_calls=%d failed_calls=%d active=%d inactive=%d total=%d",
        result.successful_calls, result.failed_calls,
        len(result.active), len(result.inactive), result.total,
    )
    for path in write_snapshots(out_dir, symbols, result):
        logger.info("wrote %s", path)
    logger.info("done, commit the files under %s", out_dir)
    return 0


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Snapshot active/inactive coin symbols")
    parser.add_argument("--icons-dir", type=Path, default=None, help="Directory with *.svg icons")
    parser.add_argument("--out-dir", type=Path, default=Path("public/data"), help="Where to write the JSON files")
    parser.add_argument("--batch-size", type=int, default=OFFLINE_BATCH_SIZE, help="Symbols per API call")
    parser.add_argument("--delay", type=float, default=OFFLINE_DELAY_SEC, help="Seconds between API calls")
    args = parser.parse_args()

    configure_logging()
    icons_dir = args.icons_dir or get_settings().icons_dir
    try:
        code = asyncio.run(run(icons_dir, args.out_dir, max(1, args.batch_size), max(0.0, args.delay)))
    except Exception:
        logger.exception("fatal error")
        code = 1
    sys.exit(code)
