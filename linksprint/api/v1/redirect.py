from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from linksprint.dependencies import get_click_recorder, get_url_service
from linksprint.queue.models import ClickEvent
from linksprint.services.click_recorder import ClickRecorder
from linksprint.services.url_service import URLService

router = APIRouter(tags=["redirect"])


@router.get("/{short_code}")
async def redirect_to_original_url(
    short_code: str,
    request: Request,
    url_service: URLService = Depends(get_url_service),
    clicks: ClickRecorder = Depends(get_click_recorder)
):
    """
    Redirect to the original URL.

    Flow:
    1. Resolve through the cache, falling back to the store (404 if neither has it)
    2. Hand a click event to the recorder; it is published in the background
    3. Redirect immediately, without waiting on click tracking
    """
    original_url = await url_service.resolve(short_code)

    clicks.publish_event(
        ClickEvent(
            short_code=short_code,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
            referer=request.headers.get("referer"),
        )
    )

    return RedirectResponse(url=original_url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
