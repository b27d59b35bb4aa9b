"""
Live-update stream (Server-Sent Events)
"""
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from hackportal.api.deps import get_portal
from hackportal.core.rate_limiter import limiter
from hackportal.services.container import PortalServices

router = APIRouter(tags=["Live Updates"])


@router.get("/events")
@limiter.exempt
async def live_updates(
    portal: PortalServices = Depends(get_portal)
):
    """
    Stream catalog/ledger changes to the client.

    Frames are `data: {"type", "data", "timestamp"}`; a heartbeat frame is
    sent every heartbeat interval whether or not events went out in between.
    """
    observer = await portal.broadcaster.subscribe()

    return StreamingResponse(
        portal.broadcaster.stream(observer),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )
