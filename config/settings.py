# config/settings.py
"""
Runtime settings, read once from the environment.

.env and .env.local are loaded (without overriding real env vars) so local
development can keep the CoinMarketCap key out of the shell.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()
load_dotenv(".env.local")

# Values shipped in example env files; treated as "no key".
PLACEHOLDER_API_KEYS = {"your_api_key_here", "VOEG_HIER_JE_API_KEY_TOE"}

DEFAULT_TOP100_TTL_MS = 24 * 60 * 60 * 1000          # 24h
DEFAULT_ACTIVE_TTL_MS = 7 * 24 * 60 * 60 * 1000      # 7 days

ACTIVE_SOURCE_SET = "active_set"
ACTIVE_SOURCE_LISTING = "listing_flag"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _csv_env(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [p.strip() for p in raw.split(",") if p.strip()]


def clean_api_key(value: Optional[str]) -> Optional[str]:
    key = (value or "").strip()
    if not key or key in PLACEHOLDER_API_KEYS:
        return None
    return key


@dataclass(frozen=True)
class Settings:
    cmc_api_key: Optional[str] = None
    cmc_base_url: str = "https://pro-api.coinmarketcap.com"
    cmc_timeout_sec: float = 20.0

    top100_ttl_ms: int = DEFAULT_TOP100_TTL_MS
    active_ttl_ms: int = DEFAULT_ACTIVE_TTL_MS

    active_batch_size: int = 100
    active_batch_delay_ms: int = 100

    icons_dir: Path = Path("public/icons")
    active_status_source: str = ACTIVE_SOURCE_SET

    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    rate_limit_default: str = "60/minute"
    rate_limit_market: str = "30/minute"

    @property
    def api_key_configured(self) -> bool:
        return clean_api_key(self.cmc_api_key) is not None

    @property
    def top100_ttl_sec(self) -> float:
        return self.top100_ttl_ms / 1000.0

    @property
    def active_ttl_sec(self) -> float:
        return self.active_ttl_ms / 1000.0

    @classmethod
    def from_env(cls) -> "Settings":
        source = (os.getenv("ACTIVE_STATUS_SOURCE") or ACTIVE_SOURCE_SET).strip().lower()
        if source not in (ACTIVE_SOURCE_SET, ACTIVE_SOURCE_LISTING):
            source = ACTIVE_SOURCE_SET

        return cls(
            cmc_api_key=clean_api_key(os.getenv("COINMARKETCAP_API_KEY")),
            cmc_base_url=os.getenv("CMC_BASE_URL", "https://pro-api.coinmarketcap.com").rstrip("/"),
            cmc_timeout_sec=_float_env("CMC_TIMEOUT_SEC", 20.0),
            top100_ttl_ms=_int_env("CMC_CACHE_DURATION", DEFAULT_TOP100_TTL_MS),
            active_ttl_ms=_int_env("CMC_ACTIVE_COINS_CACHE_DURATION", DEFAULT_ACTIVE_TTL_MS),
            active_batch_size=max(1, _int_env("ACTIVE_COINS_BATCH_SIZE", 100)),
            active_batch_delay_ms=max(0, _int_env("ACTIVE_COINS_BATCH_DELAY_MS", 100)),
            icons_dir=Path(os.getenv("ICONS_DIR", "public/icons")),
            active_status_source=source,
            cors_origins=_csv_env("CORS_ORIGINS", "http://localhost:3000"),
            rate_limit_default=os.getenv("RATE_LIMIT_DEFAULT", "60/minute"),
            rate_limit_market=os.getenv("RATE_LIMIT_MARKET", "30/minute"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
