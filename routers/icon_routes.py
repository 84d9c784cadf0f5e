# routers/icon_routes.py
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import FileResponse

from middleware.rate_limit import limiter
from routers.market_routes import get_market_service
from schemas.market import IconListResponse
from services.icons.filter_pipeline import filter_icons
from services.market.market_data_service import MarketDataService

router = APIRouter()


@router.get("", response_model=IconListResponse)
@limiter.limit("120/minute")
async def list_icons(
    request: Request,
    search: str = Query("", description="Case-insensitive match on name or symbol"),
    top100: bool = Query(False, description="Only coins in the current top 100"),
    active: bool = Query(True, description="Only actively listed coins"),
    svc: MarketDataService = Depends(get_market_service),
):
    icons = svc.icons.icons()

    # market data is only needed when a market filter is on
    state = await svc.market_state() if (top100 or active) else None

    filtered = filter_icons(
        icons,
        search,
        top100_only=top100,
        active_only=active,
        is_top100=state.top100_predicate if state else None,
        is_active=state.active_predicate if state else None,
    )
    return {
        "icons": [i.to_dict() for i in filtered],
        "total": len(icons),
        "filtered": len(filtered),
        "isFiltered": bool(search.strip()),
        "apiKeyConfigured": state.api_key_configured if state else svc.cmc.configured,
        "marketError": state.error if state else None,
    }


@router.get("/{file_name}")
async def get_icon_file(
    file_name: str,
    svc: MarketDataService = Depends(get_market_service),
):
    icon = svc.icons.find(file_name)
    if icon is None:
        raise HTTPException(status_code=404, detail="Icon not found")
    return FileResponse(svc.icons.directory / icon.file_name, media_type="image/svg+xml")
