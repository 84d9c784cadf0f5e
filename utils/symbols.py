# utils/symbols.py
from __future__ import annotations

import re
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")

# "Bitcoin (BTC)" -> "BTC"; anchored so only the trailing group counts
_TRAILING_GROUP = re.compile(r"\(([^)]+)\)$")
_QUERYABLE = re.compile(r"^[A-Z0-9]+$")


def normalize_symbol(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def strip_extension(file_name: str) -> str:
    base = file_name or ""
    dot = base.rfind(".")
    return base[:dot] if dot > 0 else base


def parenthesized_symbol(base_name: str) -> Optional[str]:
    """Content of the trailing "(...)" group, uppercased, or None."""
    m = _TRAILING_GROUP.search(base_name or "")
    if not m:
        return None
    return normalize_symbol(m.group(1))


def extract_symbol(file_name: str) -> str:
    """
    Canonical ticker for an icon file.

      "Bitcoin (BTC).svg" -> "BTC"
      "bitcoin.svg"       -> "BITCOIN"
    """
    base = strip_extension(file_name)
    sym = parenthesized_symbol(base)
    if sym is not None:
        return sym
    return base.upper()


def is_queryable_symbol(symbol: str) -> bool:
    # upstream rejects the whole batch if a single symbol has punctuation/spaces
    return bool(_QUERYABLE.match(symbol or ""))


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    seq = list(items)
    return [seq[i : i + size] for i in range(0, len(seq), size)]
