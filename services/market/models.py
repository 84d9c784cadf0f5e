# services/market/models.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Tuple

from utils.symbols import normalize_symbol


def _epoch_ms(ts: float) -> int:
    return int(round(ts * 1000))


@dataclass(frozen=True)
class Coin:
    id: int
    name: str
    symbol: str
    rank: Optional[int] = None
    is_active: bool = True

    @classmethod
    def from_cmc(cls, raw: Dict[str, Any]) -> "Coin":
        rank = raw.get("cmc_rank")
        return cls(
            id=int(raw.get("id") or 0),
            name=str(raw.get("name") or ""),
            symbol=str(raw.get("symbol") or ""),
            rank=int(rank) if isinstance(rank, (int, float)) else None,
            # CMC sends 1/0; missing means listed
            is_active=raw.get("is_active", 1) in (1, True),
        )

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Coin":
        return cls.from_cmc(raw)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "symbol": self.symbol,
            "cmc_rank": self.rank,
            "is_active": 1 if self.is_active else 0,
        }


@dataclass(frozen=True)
class MarketSnapshot:
    """Top listings in upstream order, replaced wholesale on refresh."""

    coins: Tuple[Coin, ...]
    fetched_at: float

    def symbols(self) -> FrozenSet[str]:
        return frozenset(normalize_symbol(c.symbol) for c in self.coins)

    def find(self, symbol: str) -> Optional[Coin]:
        sym = normalize_symbol(symbol)
        for c in self.coins:
            if normalize_symbol(c.symbol) == sym:
                return c
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coins": [c.to_dict() for c in self.coins],
            "timestamp": _epoch_ms(self.fetched_at),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "MarketSnapshot":
        coins = raw.get("coins") or []
        ts = raw.get("timestamp") or 0
        return cls(
            coins=tuple(Coin.from_dict(c) for c in coins if isinstance(c, dict)),
            fetched_at=float(ts) / 1000.0,
        )


@dataclass(frozen=True)
class ActiveSymbolSet:
    symbols: FrozenSet[str]
    fetched_at: float
    total_checked: int = 0
    api_calls_made: int = 0

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and normalize_symbol(symbol) in self.symbols

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activeSymbols": sorted(self.symbols),
            "timestamp": _epoch_ms(self.fetched_at),
            "totalChecked": self.total_checked,
            "apiCallsMade": self.api_calls_made,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ActiveSymbolSet":
        symbols = raw.get("activeSymbols") or []
        return cls(
            symbols=frozenset(normalize_symbol(s) for s in symbols if isinstance(s, str)),
            fetched_at=float(raw.get("timestamp") or 0) / 1000.0,
            total_checked=int(raw.get("totalChecked") or 0),
            api_calls_made=int(raw.get("apiCallsMade") or 0),
        )
