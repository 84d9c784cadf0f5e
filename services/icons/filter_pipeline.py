# services/icons/filter_pipeline.py
"""
Search + market filters over the icon list.

Order: text search, then top-100, then active. A predicate of None means the
backing snapshot is unavailable; that stage passes everything through no
matter what the toggle says, so missing market data never empties the grid.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from services.icons.icon_catalog import IconAsset

SymbolPredicate = Callable[[str], bool]


def matches_search(icon: IconAsset, query: str) -> bool:
    q = query.lower()
    return (
        q in icon.display_name.lower()
        or q in icon.canonical_name.lower()
        or (icon.symbol is not None and q in icon.symbol.lower())
    )


def _by_symbol(icons: List[IconAsset], predicate: SymbolPredicate) -> List[IconAsset]:
    return [i for i in icons if i.symbol and predicate(i.symbol)]


def filter_icons(
    icons: Sequence[IconAsset],
    search: str = "",
    *,
    top100_only: bool = False,
    active_only: bool = False,
    is_top100: Optional[SymbolPredicate] = None,
    is_active: Optional[SymbolPredicate] = None,
) -> List[IconAsset]:
    out = list(icons)

    # blank input means no search; otherwise the raw text is matched, spaces included
    query = search or ""
    if query.strip():
        out = [i for i in out if matches_search(i, query)]

    if top100_only and is_top100 is not None:
        out = _by_symbol(out, is_top100)

    if active_only and is_active is not None:
        out = _by_symbol(out, is_active)

    return out
