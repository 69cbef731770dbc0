"""
Data models for queue messages.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from linksprint.clock import utcnow


class ClickEvent(BaseModel):
    """
    Event model for click tracking.

    Published to the queue when a short link redirects; the click worker
    turns each event into one `analytics` row.
    """

    short_code: str = Field(..., description="The short code that was accessed")
    timestamp: datetime = Field(default_factory=utcnow, description="When the click occurred")

    # Request metadata
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="User agent string")
    referer: Optional[str] = Field(None, description="HTTP referer")

    # Geography, when an upstream proxy or client supplies it
    country: Optional[str] = Field(None, description="Country name or code")
    city: Optional[str] = Field(None, description="City name")

    # Set by the queue on consume, used for acknowledgement
    message_id: Optional[str] = Field(None, exclude=True)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "short_code": "promo1",
                "timestamp": "2025-10-29T10:30:00Z",
                "ip_address": "192.168.1.1",
                "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0",
                "referer": "https://twitter.com",
                "country": "US",
                "city": "Austin",
            }
        }
    )
