# routers/market_routes.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from middleware.rate_limit import limiter, market_limit
from schemas.market import ActiveCoinsResponse, MarketErrorResponse, Top100Response
from services.market.market_data_service import Envelope, MarketDataService
from services.market.snapshot_cache import CacheStatus

logger = logging.getLogger(__name__)

router = APIRouter()

CACHE_HEADER = "X-Cache"
_CACHE_HEADER_VALUES = {
    CacheStatus.FRESH: "MISS",
    CacheStatus.CACHED: "HIT",
    CacheStatus.STALE: "STALE",
    CacheStatus.UNCONFIGURED: "BYPASS",
}
_OTHER_METHODS = ["POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


# ---- Dependency: one service (and its caches) per app ----
def get_market_service(request: Request) -> MarketDataService:
    return request.app.state.market_service


def _respond(envelope: Envelope, status: Optional[CacheStatus]) -> JSONResponse:
    code, body = envelope
    headers = {CACHE_HEADER: _CACHE_HEADER_VALUES[status]} if status is not None else None
    return JSONResponse(status_code=code, content=body, headers=headers)


def _method_not_allowed(request: Request) -> JSONResponse:
    return JSONResponse(
        status_code=405,
        content={"success": False, "error": f"Method {request.method} Not Allowed"},
        headers={"Allow": "GET"},
    )


_responses = {
    200: {"model": MarketErrorResponse, "description": "API key not configured"},
    500: {"model": MarketErrorResponse, "description": "Fetch failed and nothing cached"},
}


@router.get("/top100", response_model=Top100Response, responses=_responses)
@limiter.limit(market_limit)
async def get_top100(
    request: Request,
    svc: MarketDataService = Depends(get_market_service),
):
    """Top 100 coins by market cap; cached for CMC_CACHE_DURATION ms."""
    envelope, status = await svc.top100_envelope()
    return _respond(envelope, status)


@router.get("/active-coins", response_model=ActiveCoinsResponse, responses=_responses)
@limiter.limit(market_limit)
async def get_active_coins(
    request: Request,
    svc: MarketDataService = Depends(get_market_service),
):
    """Icon symbols that are actively listed; cached for CMC_ACTIVE_COINS_CACHE_DURATION ms."""
    envelope, status = await svc.active_coins_envelope()
    return _respond(envelope, status)


@router.api_route("/top100", methods=_OTHER_METHODS, include_in_schema=False)
async def top100_other_methods(request: Request):
    return _method_not_allowed(request)


@router.api_route("/active-coins", methods=_OTHER_METHODS, include_in_schema=False)
async def active_coins_other_methods(request: Request):
    return _method_not_allowed(request)
