# services/icons/icon_catalog.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from utils.symbols import extract_symbol, parenthesized_symbol, strip_extension

logger = logging.getLogger(__name__)

ICON_EXTENSION = ".svg"
ICONS_URL_PREFIX = "/icons"


@dataclass(frozen=True)
class IconAsset:
    display_name: str
    canonical_name: str
    symbol: Optional[str]
    file_name: str
    path: str

    @classmethod
    def from_file_name(cls, file_name: str) -> "IconAsset":
        base = strip_extension(file_name)
        sym = parenthesized_symbol(base)
        display = base[: base.rfind("(")].strip() if sym is not None else base
        return cls(
            display_name=display or base,
            canonical_name=base,
            symbol=sym,
            file_name=file_name,
            path=f"{ICONS_URL_PREFIX}/{file_name}",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "displayName": self.display_name,
            "name": self.canonical_name,
            "symbol": self.symbol,
            "fileName": self.file_name,
            "path": self.path,
        }


def list_icon_files(directory: Union[str, Path]) -> List[str]:
    root = Path(directory)
    if not root.is_dir():
        logger.warning("icons directory missing path=%s", root)
        return []
    return sorted(
        p.name for p in root.iterdir()
        if p.is_file() and p.suffix.lower() == ICON_EXTENSION
    )


def load_icons(directory: Union[str, Path]) -> List[IconAsset]:
    icons = [IconAsset.from_file_name(f) for f in list_icon_files(directory)]
    logger.debug("loaded icons count=%d dir=%s", len(icons), directory)
    return icons


def icon_symbols(file_names: Iterable[str]) -> List[str]:
    """Distinct extracted symbols, in first-seen order."""
    seen: Dict[str, None] = {}
    for name in file_names:
        seen.setdefault(extract_symbol(name), None)
    return list(seen)


class IconCatalog:
    """Icon list for a directory, loaded lazily and kept for the process."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self._icons: Optional[List[IconAsset]] = None

    def icons(self) -> List[IconAsset]:
        if self._icons is None:
            self._icons = load_icons(self.directory)
        return self._icons

    def symbols(self) -> List[str]:
        return icon_symbols(i.file_name for i in self.icons())

    def find(self, file_name: str) -> Optional[IconAsset]:
        for icon in self.icons():
            if icon.file_name == file_name:
                return icon
        return None

    def reload(self) -> int:
        self._icons = load_icons(self.directory)
        return len(self._icons)
