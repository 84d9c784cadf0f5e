# main.py
import os
if os.getenv("DEBUGPY", "0") == "1":
    import debugpy
    debugpy.listen(("0.0.0.0", 5678))

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from config.logging_config import configure_logging
from config.settings import Settings, get_settings
from middleware.rate_limit import limiter
from middleware.request_logging import RequestLoggingMiddleware
from routers.icon_routes import router as icon_router
from routers.market_routes import router as market_router
from services.market.market_data_service import MarketDataService


def create_app(
    settings: Optional[Settings] = None,
    market_service: Optional[MarketDataService] = None,
) -> FastAPI:
    settings = settings or get_settings()
    service = market_service or MarketDataService(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.market_service.aclose()

    app = FastAPI(title="Crypto Icon Catalog", lifespan=lifespan)
    app.state.market_service = service
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(market_router, prefix="/api/market")
    app.include_router(icon_router, prefix="/api/icons")

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "apiKeyConfigured": settings.api_key_configured,
            "icons": len(service.icons.icons()),
        }

    return app


configure_logging()
app = create_app()
