# services/market/market_state.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional

from config.settings import ACTIVE_SOURCE_LISTING, ACTIVE_SOURCE_SET
from services.icons.filter_pipeline import SymbolPredicate
from services.market.errors import API_KEY_NOT_CONFIGURED
from services.market.models import ActiveSymbolSet, MarketSnapshot
from utils.symbols import normalize_symbol

logger = logging.getLogger(__name__)

DEGRADED_MESSAGE = "Failed to load market data. Filter features may be limited."


@dataclass(frozen=True)
class MarketDataState:
    """
    What the catalog knows about market data at render time.

    Predicates default to True when their snapshot is missing: no data means
    "show everything", never "hide everything".
    """

    top100: Optional[MarketSnapshot] = None
    active: Optional[ActiveSymbolSet] = None
    api_key_configured: bool = True
    error: Optional[str] = None
    active_source: str = ACTIVE_SOURCE_SET

    @property
    def has_top100(self) -> bool:
        return self.top100 is not None

    @property
    def has_active_status(self) -> bool:
        if self.active_source == ACTIVE_SOURCE_LISTING:
            return self.top100 is not None
        return self.active is not None

    def _top100_symbols(self) -> FrozenSet[str]:
        return self.top100.symbols() if self.top100 is not None else frozenset()

    def is_top100(self, symbol: str) -> bool:
        if self.top100 is None:
            return True
        return normalize_symbol(symbol) in self._top100_symbols()

    def is_active(self, symbol: str) -> bool:
        if self.active_source == ACTIVE_SOURCE_LISTING:
            if self.top100 is None:
                return True
            coin = self.top100.find(symbol)
            # outside the top 100 -> no data -> assume active
            return True if coin is None else coin.is_active

        if self.active is None:
            return True
        return symbol in self.active

    @property
    def top100_predicate(self) -> Optional[SymbolPredicate]:
        if not self.has_top100:
            return None
        symbols = self._top100_symbols()
        return lambda s: normalize_symbol(s) in symbols

    @property
    def active_predicate(self) -> Optional[SymbolPredicate]:
        return self.is_active if self.has_active_status else None

    @classmethod
    def unconfigured(cls, active_source: str = ACTIVE_SOURCE_SET) -> "MarketDataState":
        return cls(api_key_configured=False, active_source=active_source)

    @classmethod
    def degraded(cls, active_source: str = ACTIVE_SOURCE_SET) -> "MarketDataState":
        return cls(error=DEGRADED_MESSAGE, active_source=active_source)

    @classmethod
    def from_envelopes(
        cls,
        top100_body: Any,
        active_body: Any,
        *,
        active_source: str = ACTIVE_SOURCE_SET,
    ) -> "MarketDataState":
        """
        Build state from the two endpoint bodies.

        Either side unconfigured wins over everything (feature disabled, no
        error). Any other unsuccessful body yields the degraded state. In
        listing_flag mode only the top-100 body is read; `active_body` may be
        None.
        """
        listing_only = active_source == ACTIVE_SOURCE_LISTING
        top = top100_body if isinstance(top100_body, dict) else {}
        act = active_body if isinstance(active_body, dict) else {}
        act_ok = listing_only or act.get("success") is True

        if top.get("success") is True and act_ok:
            try:
                return cls(
                    top100=MarketSnapshot.from_dict(top.get("data") or {}),
                    active=None if listing_only else ActiveSymbolSet.from_dict(act.get("data") or {}),
                    active_source=active_source,
                )
            except (TypeError, ValueError) as e:
                logger.warning("market data payload malformed: %s", e)
                return cls.degraded(active_source)

        errors = [top.get("error")] if listing_only else [top.get("error"), act.get("error")]
        if API_KEY_NOT_CONFIGURED in errors:
            return cls.unconfigured(active_source)

        return cls.degraded(active_source)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "apiKeyConfigured": self.api_key_configured,
            "error": self.error,
            "hasTop100": self.has_top100,
            "hasActiveStatus": self.has_active_status,
            "activeSource": self.active_source,
        }
