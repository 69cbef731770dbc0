import logging
from datetime import datetime, timedelta

from linksprint.cache.keys import clicks_key
from linksprint.cache.strategies import CacheStrategy
from linksprint.clock import utcnow
from linksprint.exceptions import CacheUnavailableError, NotFoundError
from linksprint.queue.models import ClickEvent
from linksprint.schemas.analytics import (
    AnalyticsSummary,
    DailyClicks,
    GlobalAnalytics,
    NamedCount,
    RefererCount,
    TrackClickRequest,
)
from linksprint.storage.strategies import StoreStrategy

logger = logging.getLogger(__name__)

TOP_N = 5
TREND_DAYS = 7
ACTIVE_WINDOW_DAYS = 30


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


class AnalyticsService:
    """
    Click analytics, derived entirely from store count queries.

    The analytics table and the cache click counter are independent
    metrics and are not expected to agree.
    """

    def __init__(self, store: StoreStrategy, cache: CacheStrategy):
        self.store = store
        self.cache = cache

    async def track_click(self, request: TrackClickRequest) -> None:
        """Record one click row for an active link and bump the cache counter."""
        url = self.store.get_url(request.short_code, active_only=True, not_expired=False)
        if url is None:
            raise NotFoundError("URL not found")

        event = ClickEvent(**request.model_dump())
        self.store.insert_click(url, event)

        try:
            await self.cache.increment(clicks_key(request.short_code))
        except CacheUnavailableError as e:
            logger.warning("Click counter increment failed for %s: %s", request.short_code, e)

    async def get_analytics(self, short_code: str) -> AnalyticsSummary:
        if self.store.get_url(short_code, active_only=True, not_expired=False) is None:
            raise NotFoundError("URL not found")

        trend_start = _start_of_day(utcnow()) - timedelta(days=TREND_DAYS - 1)

        return AnalyticsSummary(
            short_code=short_code,
            total_clicks=self.store.count_clicks(short_code),
            unique_clicks=self.store.count_unique_clicks(short_code),
            top_countries=[
                NamedCount(name=name, count=count)
                for name, count in self.store.top_values(short_code, "country", TOP_N)
            ],
            top_cities=[
                NamedCount(name=name, count=count)
                for name, count in self.store.top_values(short_code, "city", TOP_N)
            ],
            top_referers=[
                RefererCount(url=url, count=count)
                for url, count in self.store.top_values(short_code, "referer", TOP_N)
            ],
            click_trend=[
                DailyClicks(date=day, count=count)
                for day, count in self.store.click_trend(short_code, trend_start)
            ],
            last_clicked_at=self.store.last_clicked_at(short_code),
        )

    async def get_global_analytics(self) -> GlobalAnalytics:
        """Site-wide totals. Day, week (Monday start) and month boundaries are UTC."""
        now = utcnow()
        today = _start_of_day(now)
        week_start = today - timedelta(days=today.weekday())
        month_start = today.replace(day=1)

        return GlobalAnalytics(
            total_urls=self.store.count_active_urls(),
            total_clicks=self.store.count_all_clicks(),
            active_urls=self.store.count_active_urls(since=now - timedelta(days=ACTIVE_WINDOW_DAYS)),
            today_clicks=self.store.count_all_clicks(since=today),
            this_week_clicks=self.store.count_all_clicks(since=week_start),
            this_month_clicks=self.store.count_all_clicks(since=month_start),
        )
