# middleware/rate_limit.py
"""
Rate limiting for the public endpoints, using slowapi.

Usage in route files:
    from middleware.rate_limit import limiter, market_limit

    @router.get("/top100")
    @limiter.limit(market_limit)
    async def top100(request: Request):
        ...

The market endpoints front a paid upstream quota, so they get their own
(tighter) limit on top of the default.
"""
import logging
import os

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from config.settings import get_settings

logger = logging.getLogger(__name__)


def _get_rate_limit_key(request: Request) -> str:
    """
    Bucket by client address. Behind a proxy the first X-Forwarded-For hop is
    the real client.
    """
    fwd = request.headers.get("X-Forwarded-For", "")
    if fwd:
        first = fwd.split(",", 1)[0].strip()
        if first:
            return first
    return get_remote_address(request)


def market_limit() -> str:
    return get_settings().rate_limit_market


limiter = Limiter(
    key_func=_get_rate_limit_key,
    default_limits=[get_settings().rate_limit_default],
    storage_uri=os.getenv("REDIS_URL", "memory://"),
    strategy="fixed-window",
)
