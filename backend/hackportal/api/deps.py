from fastapi import Request, Response

from hackportal.core.exceptions import StoreUnavailableError
from hackportal.services.container import PortalServices

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def get_portal(request: Request) -> PortalServices:
    """Services built at startup and attached to the application"""
    portal = getattr(request.app.state, "portal", None)
    if portal is None:
        raise StoreUnavailableError("Portal services are not initialized")
    return portal


def no_cache(response: Response) -> None:
    """Mark a live view as uncacheable"""
    response.headers.update(NO_CACHE_HEADERS)
