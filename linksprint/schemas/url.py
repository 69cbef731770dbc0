from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from linksprint.config import settings


def build_short_url(short_code: str) -> str:
    return f"{settings.base_url.rstrip('/')}/{short_code}"


class URLCreate(BaseModel):
    """Body of POST /api/v1/urls/shorten.

    `original_url` is a plain string on purpose: the URL service validates
    it and answers 400, not the framework's 422.
    """
    original_url: str = Field(..., description="The original URL to be shortened")
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    custom_code: Optional[str] = Field(None, description="3-10 chars of [A-Za-z0-9-]")
    expires_at: Optional[datetime] = None


class URLCreated(BaseModel):
    """Response schema for a newly created short link.

    Reads straight from the SQLAlchemy model (from_attributes=True);
    short_url is derived from short_code.
    """
    short_code: str
    original_url: str
    title: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime
    expires_at: Optional[datetime] = None

    @computed_field
    @property
    def short_url(self) -> str:
        return build_short_url(self.short_code)

    model_config = ConfigDict(from_attributes=True)


class URLResponse(URLCreated):
    """A link as shown in listings."""
    id: int
    is_active: bool
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None


class URLList(BaseModel):
    urls: List[URLResponse]
    total: int
    page: int
    per_page: int
    total_pages: int


class URLStats(BaseModel):
    short_code: str
    original_url: str
    total_clicks: int = Field(..., description="Fast-path counter kept in the cache")
    unique_clicks: int = Field(..., description="Distinct client IPs in the analytics table")
    created_at: datetime
    last_clicked_at: Optional[datetime] = None


class URLDeleted(BaseModel):
    message: str
    short_code: str
