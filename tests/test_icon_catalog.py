import unittest
from pathlib import Path

from services.icons.icon_catalog import IconAsset, IconCatalog, icon_symbols, load_icons
from tests.fakes import make_icons_dir


class IconAssetTests(unittest.TestCase):
    def test_from_file_name_with_symbol(self) -> None:
        icon = IconAsset.from_file_name("Bitcoin (BTC).svg")
        self.assertEqual(icon.display_name, "Bitcoin")
        self.assertEqual(icon.canonical_name, "Bitcoin (BTC)")
        self.assertEqual(icon.symbol, "BTC")
        self.assertEqual(icon.path, "/icons/Bitcoin (BTC).svg")

    def test_from_file_name_without_symbol(self) -> None:
        icon = IconAsset.from_file_name("bitcoin.svg")
        self.assertEqual(icon.display_name, "bitcoin")
        self.assertIsNone(icon.symbol)

    def test_to_dict_keys(self) -> None:
        d = IconAsset.from_file_name("Ethereum (ETH).svg").to_dict()
        self.assertEqual(set(d), {"displayName", "name", "symbol", "fileName", "path"})


class IconCatalogTests(unittest.TestCase):
    def test_loads_only_svg_sorted(self) -> None:
        tmp = make_icons_dir(["Solana (SOL).svg", "Bitcoin (BTC).svg", "readme.txt"])
        self.addCleanup(tmp.cleanup)

        icons = load_icons(tmp.name)
        self.assertEqual([i.file_name for i in icons], ["Bitcoin (BTC).svg", "Solana (SOL).svg"])

    def test_missing_directory_is_empty(self) -> None:
        self.assertEqual(load_icons(Path("/nonexistent/icons/dir")), [])

    def test_symbols_are_distinct(self) -> None:
        self.assertEqual(
            icon_symbols(["Bitcoin (BTC).svg", "Bitcoin Alt (btc).svg", "dogecoin.svg"]),
            ["BTC", "DOGECOIN"],
        )

    def test_catalog_find_and_reload(self) -> None:
        tmp = make_icons_dir(["Bitcoin (BTC).svg"])
        self.addCleanup(tmp.cleanup)
        catalog = IconCatalog(tmp.name)

        self.assertIsNotNone(catalog.find("Bitcoin (BTC).svg"))
        self.assertIsNone(catalog.find("nope.svg"))

        (Path(tmp.name) / "Ethereum (ETH).svg").write_text("<svg/>")
        self.assertEqual(len(catalog.icons()), 1)
        self.assertEqual(catalog.reload(), 2)
        self.assertEqual(catalog.symbols(), ["BTC", "ETH"])


if __name__ == "__main__":
    unittest.main()
