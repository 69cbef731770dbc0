from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TrackClickRequest(BaseModel):
    """Body of POST /api/v1/analytics/track"""
    short_code: str = Field(..., min_length=1)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referer: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None


class TrackClickResponse(BaseModel):
    message: str
    short_code: str


class NamedCount(BaseModel):
    name: str
    count: int


class RefererCount(BaseModel):
    url: str
    count: int


class DailyClicks(BaseModel):
    date: str
    count: int


class AnalyticsSummary(BaseModel):
    short_code: str
    total_clicks: int
    unique_clicks: int
    top_countries: List[NamedCount] = []
    top_cities: List[NamedCount] = []
    top_referers: List[RefererCount] = []
    click_trend: List[DailyClicks] = []
    last_clicked_at: Optional[datetime] = None


class GlobalAnalytics(BaseModel):
    total_urls: int
    total_clicks: int
    active_urls: int = Field(..., description="Active links created in the last 30 days")
    today_clicks: int
    this_week_clicks: int
    this_month_clicks: int
