import unittest
from pathlib import Path
from urllib.parse import quote

from fastapi.testclient import TestClient

from config.settings import ACTIVE_SOURCE_LISTING, ACTIVE_SOURCE_SET, Settings
from main import create_app
from middleware.rate_limit import limiter
from services.icons.icon_catalog import IconCatalog
from services.market.market_data_service import MarketDataService
from services.market.rate_limiter import IntervalRateLimiter
from tests.fakes import FakeClock, FakeCoinMarketCap, RecordingSleep, make_icons_dir

ICONS = ["Bitcoin (BTC).svg", "Ethereum (ETH).svg", "Solana (SOL).svg", "ghost.svg"]


class _RoutesTestCase(unittest.TestCase):
    def setUp(self) -> None:
        limiter.enabled = False
        self.addCleanup(setattr, limiter, "enabled", True)
        self.tmp = make_icons_dir(ICONS)
        self.addCleanup(self.tmp.cleanup)
        self.clock = FakeClock()

    def _client(
        self, fake: FakeCoinMarketCap, api_key="test-key", active_source: str = ACTIVE_SOURCE_SET,
    ) -> TestClient:
        settings = Settings(
            cmc_api_key=api_key,
            icons_dir=Path(self.tmp.name),
            active_status_source=active_source,
        )
        svc = MarketDataService(
            settings,
            cmc=fake.client(api_key=api_key),
            icons=IconCatalog(self.tmp.name),
            clock=self.clock,
            limiter_factory=lambda: IntervalRateLimiter(0, sleep=RecordingSleep()),
        )
        self.service = svc
        return TestClient(create_app(settings, svc))


class MarketRoutesTests(_RoutesTestCase):
    def test_top100_fresh_then_cached(self) -> None:
        client = self._client(FakeCoinMarketCap())

        r = client.get("/api/market/top100")
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertTrue(body["success"])
        self.assertFalse(body["cached"])
        self.assertEqual(len(body["data"]["coins"]), 3)
        self.assertEqual(r.headers["X-Cache"], "MISS")

        r = client.get("/api/market/top100")
        self.assertTrue(r.json()["cached"])
        self.assertEqual(r.headers["X-Cache"], "HIT")

    def test_active_coins_shape(self) -> None:
        client = self._client(FakeCoinMarketCap(active={"BTC", "SOL"}))
        r = client.get("/api/market/active-coins")

        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertEqual(sorted(data["activeSymbols"]), ["BTC", "SOL"])
        self.assertEqual(data["totalChecked"], 4)
        self.assertEqual(data["apiCallsMade"], 1)
        self.assertIn("timestamp", data)

    def test_unconfigured_is_200(self) -> None:
        client = self._client(FakeCoinMarketCap(), api_key=None)
        for path in ("/api/market/top100", "/api/market/active-coins"):
            r = client.get(path)
            self.assertEqual(r.status_code, 200)
            self.assertEqual(r.json(), {"success": False, "error": "API_KEY_NOT_CONFIGURED"})

    def test_total_failure_without_cache_is_500(self) -> None:
        client = self._client(FakeCoinMarketCap(connect_error=True))
        r = client.get("/api/market/top100")
        self.assertEqual(r.status_code, 500)
        self.assertFalse(r.json()["success"])
        self.assertTrue(r.json()["error"])

    def test_stale_cache_is_served_after_failure(self) -> None:
        fake = FakeCoinMarketCap()
        client = self._client(fake)
        client.get("/api/market/top100")

        self.clock.advance(self.service.settings.top100_ttl_sec + 1)
        fake.connect_error = True
        r = client.get("/api/market/top100")

        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.json()["cached"])
        self.assertEqual(r.headers["X-Cache"], "STALE")

    def test_non_get_methods_are_rejected(self) -> None:
        client = self._client(FakeCoinMarketCap())
        for path in ("/api/market/top100", "/api/market/active-coins"):
            for method in ("POST", "PUT", "DELETE"):
                r = client.request(method, path)
                self.assertEqual(r.status_code, 405)
                self.assertEqual(r.headers["Allow"], "GET")
                self.assertEqual(r.json()["error"], f"Method {method} Not Allowed")

    def test_head_and_options_use_the_error_envelope(self) -> None:
        client = self._client(FakeCoinMarketCap())
        for path in ("/api/market/top100", "/api/market/active-coins"):
            r = client.head(path)
            self.assertEqual(r.status_code, 405)
            self.assertEqual(r.headers["Allow"], "GET")

            r = client.options(path)
            self.assertEqual(r.status_code, 405)
            self.assertEqual(r.headers["Allow"], "GET")
            self.assertEqual(r.json(), {"success": False, "error": "Method OPTIONS Not Allowed"})


class IconRoutesTests(_RoutesTestCase):
    def test_list_icons_defaults_to_active_only(self) -> None:
        client = self._client(FakeCoinMarketCap(active={"BTC", "ETH"}))
        r = client.get("/api/icons")

        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["total"], 4)
        self.assertEqual([i["symbol"] for i in body["icons"]], ["BTC", "ETH"])
        self.assertTrue(body["apiKeyConfigured"])

    def test_search_and_top100(self) -> None:
        client = self._client(FakeCoinMarketCap(active={"BTC", "ETH", "SOL"}))
        r = client.get("/api/icons", params={"search": "sol", "active": "false"})
        self.assertEqual([i["displayName"] for i in r.json()["icons"]], ["Solana"])
        self.assertTrue(r.json()["isFiltered"])

        r = client.get("/api/icons", params={"top100": "true", "active": "false"})
        self.assertEqual([i["symbol"] for i in r.json()["icons"]], ["BTC", "ETH"])

    def test_unconfigured_filters_are_inert(self) -> None:
        client = self._client(FakeCoinMarketCap(), api_key=None)
        r = client.get("/api/icons", params={"top100": "true", "active": "true"})

        body = r.json()
        self.assertEqual(body["filtered"], 4)
        self.assertFalse(body["apiKeyConfigured"])
        self.assertIsNone(body["marketError"])

    def test_listing_flag_never_queries_map(self) -> None:
        listings = [
            {"id": 1, "name": "Bitcoin", "symbol": "BTC", "cmc_rank": 1, "is_active": 1},
            {"id": 2, "name": "Ethereum", "symbol": "ETH", "cmc_rank": 2, "is_active": 0},
        ]
        fake = FakeCoinMarketCap(listings=listings, active={"BTC", "ETH", "SOL"})
        client = self._client(fake, active_source=ACTIVE_SOURCE_LISTING)

        body = client.get("/api/icons", params={"active": "true"}).json()
        client.get("/api/icons", params={"top100": "true", "active": "true"})

        self.assertEqual(fake.map_requests(), [])
        self.assertIsNone(body["marketError"])
        # ETH is flagged inactive by the listing; SOL is outside it and kept
        self.assertEqual([i["symbol"] for i in body["icons"]], ["BTC", "SOL"])

    def test_market_failure_degrades(self) -> None:
        client = self._client(FakeCoinMarketCap(connect_error=True))
        body = client.get("/api/icons").json()

        self.assertEqual(body["filtered"], 4)
        self.assertEqual(body["marketError"], "Failed to load market data. Filter features may be limited.")

    def test_icon_file(self) -> None:
        client = self._client(FakeCoinMarketCap())
        r = client.get("/api/icons/" + quote("Bitcoin (BTC).svg"))
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.headers["content-type"].startswith("image/svg+xml"))

        self.assertEqual(client.get("/api/icons/missing.svg").status_code, 404)

    def test_health(self) -> None:
        client = self._client(FakeCoinMarketCap())
        body = client.get("/health").json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["icons"], 4)


if __name__ == "__main__":
    unittest.main()
