from fastapi import APIRouter, Depends

from linksprint.dependencies import get_analytics_service
from linksprint.schemas.analytics import (
    AnalyticsSummary,
    GlobalAnalytics,
    TrackClickRequest,
    TrackClickResponse,
)
from linksprint.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["analytics"])


# Registered before /{short_code} so "global" is not taken for a code
@router.get("/global", response_model=GlobalAnalytics)
async def get_global_analytics(
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    return await analytics_service.get_global_analytics()


@router.get("/{short_code}", response_model=AnalyticsSummary)
async def get_analytics(
    short_code: str,
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    return await analytics_service.get_analytics(short_code)


@router.post("/track", response_model=TrackClickResponse)
async def track_click(
    click: TrackClickRequest,
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """Record a click reported by a client"""
    await analytics_service.track_click(click)
    return TrackClickResponse(message="Click tracked successfully", short_code=click.short_code)
