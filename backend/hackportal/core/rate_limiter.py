"""
Rate Limiting for the Registration Portal
=========================================
Implements rate limiting using slowapi.

One window for the whole API (default 1000 requests per 15 minutes per
client IP), active in production unless RATE_LIMIT_ENABLED says otherwise.
The live-update stream endpoint is exempt.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from hackportal.core.config import settings
from hackportal.core.logging_config import logger


def get_client_identifier(request: Request) -> str:
    """Rate limit key: the client IP address"""
    return f"ip:{get_remote_address(request)}"


# Create limiter instance
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[settings.RATE_LIMIT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.rate_limit_active,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Handler for rate limit exceeded errors.

    Returns the portal's error shape plus a Retry-After header.
    """
    logger.warning(
        f"[RateLimit] Exceeded for {get_client_identifier(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests from this IP, please try again later.",
            "code": "RATE_LIMIT_EXCEEDED",
            "details": {"limit": str(exc.detail)},
        },
        headers={"Retry-After": "900"},
    )
