from fastapi import APIRouter, Depends, Query, status

from linksprint.schemas.url import URLCreate, URLCreated, URLDeleted, URLList, URLStats
from linksprint.services.url_service import URLService
from linksprint.dependencies import get_url_service

router = APIRouter(prefix="/urls", tags=["urls"])


@router.post("/shorten", response_model=URLCreated, status_code=status.HTTP_201_CREATED)
async def create_short_url(
    url_data: URLCreate,
    url_service: URLService = Depends(get_url_service)
):
    """Create a new short URL"""
    return await url_service.create(
        original_url=url_data.original_url,
        custom_code=url_data.custom_code,
        title=url_data.title,
        description=url_data.description,
        expires_at=url_data.expires_at,
    )


@router.get("", response_model=URLList)
async def list_urls(
    page: int = Query(1),
    per_page: int = Query(10),
    url_service: URLService = Depends(get_url_service)
):
    """List active short URLs, newest first"""
    return await url_service.list_urls(page=page, per_page=per_page)


@router.get("/{short_code}/stats", response_model=URLStats)
async def get_url_stats(
    short_code: str,
    url_service: URLService = Depends(get_url_service)
):
    """Get statistics for a short URL"""
    return await url_service.get_stats(short_code)


@router.delete("/{short_code}", response_model=URLDeleted)
async def delete_url(
    short_code: str,
    url_service: URLService = Depends(get_url_service)
):
    """Deactivate a short URL and invalidate its cache entry"""
    await url_service.delete_url(short_code)
    return URLDeleted(message="URL deleted successfully", short_code=short_code)
