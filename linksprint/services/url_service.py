import logging
import math
from datetime import datetime
from typing import Optional

from linksprint.cache.keys import clicks_key, url_key
from linksprint.cache.strategies import CacheStrategy
from linksprint.clock import as_utc, utcnow
from linksprint.config import settings
from linksprint.exceptions import (
    CacheUnavailableError,
    CodeConflictError,
    DuplicateKeyError,
    NotFoundError,
)
from linksprint.schemas.url import URLCreated, URLList, URLResponse, URLStats
from linksprint.services.click_recorder import ClickRecorder
from linksprint.services.short_code import (
    generate_short_code,
    validate_custom_code,
    validate_original_url,
)
from linksprint.storage.strategies import StoreStrategy

logger = logging.getLogger(__name__)


class URLService:
    """
    Short link creation and resolution.

    Collaborators are injected, never created here:
    - store: durable, authoritative record of every link
    - cache: derived, possibly stale projection of code -> original URL
    - clicks: background click signals (counter increments)

    No state is kept between calls, so one instance per request is fine.
    Cache and store are never updated in one transaction; the cache TTL
    bounds how long a deactivated or expired link can keep resolving.
    """

    def __init__(
        self,
        store: StoreStrategy,
        cache: CacheStrategy,
        clicks: ClickRecorder,
    ):
        self.store = store
        self.cache = cache
        self.clicks = clicks

    async def create(
        self,
        original_url: str,
        custom_code: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> URLCreated:
        """Create a short link.

        Process:
        1. Validate the URL and the custom code (InvalidInputError)
        2. Generate a code when none is given
        3. Insert into the store; its unique constraint is the only
           conflict check, so concurrent creates cannot both win
        4. Write the mapping through to the cache (best-effort)

        A taken code, even one belonging to a deactivated link, raises
        CodeConflictError. Auto-generated codes are not retried.
        """
        validate_original_url(original_url)
        if custom_code:
            short_code = validate_custom_code(custom_code)
        else:
            short_code = generate_short_code(settings.short_code_length)

        try:
            url = self.store.insert_url(
                short_code=short_code,
                original_url=original_url,
                title=title,
                description=description,
                expires_at=expires_at,
            )
        except DuplicateKeyError as e:
            raise CodeConflictError(f"Short code '{short_code}' already exists") from e

        logger.info("Created short link %s", short_code)
        await self._cache_url(short_code, original_url, url.expires_at)

        return URLCreated.model_validate(url)

    async def resolve(self, short_code: str) -> str:
        """
        Get the original URL for a redirect using Cache-Aside.

        Flow:
        1. Check cache first; a cache failure counts as a miss
        2. Cache HIT: count the click in the background and return at once.
           Expiry and the active flag are not checked on this path.
        3. Cache MISS: query the store for an active, unexpired link.
           Store failures propagate.
        4. Write the value back to the cache, count the click, return
        """
        try:
            cached_url = await self.cache.get(url_key(short_code))
        except CacheUnavailableError as e:
            logger.warning("Cache read failed for %s, using store: %s", short_code, e)
            cached_url = None

        if cached_url:
            self.clicks.record_click(short_code)
            return cached_url

        url = self.store.get_url(short_code, active_only=True, not_expired=True)
        if url is None:
            raise NotFoundError("URL not found or expired")

        await self._cache_url(short_code, url.original_url, url.expires_at)
        self.clicks.record_click(short_code)
        return url.original_url

    async def get_stats(self, short_code: str) -> URLStats:
        url = self.store.get_url(short_code, active_only=True, not_expired=False)
        if url is None:
            raise NotFoundError("URL not found")

        return URLStats(
            short_code=url.short_code,
            original_url=url.original_url,
            total_clicks=await self._cached_click_count(short_code),
            unique_clicks=self.store.count_unique_clicks(short_code),
            created_at=url.created_at,
            last_clicked_at=self.store.last_clicked_at(short_code),
        )

    async def list_urls(self, page: int = 1, per_page: Optional[int] = None) -> URLList:
        page = max(page, 1)
        if per_page is None:
            per_page = settings.default_page_size
        per_page = min(max(per_page, 1), settings.max_page_size)

        urls, total = self.store.list_active_urls(offset=(page - 1) * per_page, limit=per_page)
        return URLList(
            urls=[URLResponse.model_validate(url) for url in urls],
            total=total,
            page=page,
            per_page=per_page,
            total_pages=math.ceil(total / per_page),
        )

    async def delete_url(self, short_code: str) -> None:
        """
        Soft delete: flip is_active in the store, then drop the cached mapping.

        If the cache delete fails the link keeps resolving from cache
        until its TTL runs out.
        """
        if not self.store.deactivate_url(short_code):
            raise NotFoundError("URL not found")
        logger.info("Deactivated short link %s", short_code)

        try:
            await self.cache.delete(url_key(short_code))
        except CacheUnavailableError as e:
            logger.warning("Cache invalidation failed for %s: %s", short_code, e)

    async def _cache_url(self, short_code: str, original_url: str, expires_at: Optional[datetime]) -> None:
        ttl = settings.cache_ttl
        if expires_at is not None:
            # Never cache past the link's own expiry
            remaining = int((as_utc(expires_at) - utcnow()).total_seconds())
            if remaining <= 0:
                return
            ttl = min(ttl, remaining)

        try:
            await self.cache.set(url_key(short_code), original_url, ttl=ttl)
        except CacheUnavailableError as e:
            logger.warning("Cache write failed for %s: %s", short_code, e)

    async def _cached_click_count(self, short_code: str) -> int:
        try:
            value = await self.cache.get(clicks_key(short_code))
        except CacheUnavailableError as e:
            logger.warning("Click counter read failed for %s: %s", short_code, e)
            return 0
        return int(value) if value else 0
