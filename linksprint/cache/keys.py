"""
Cache key layout.

    url:{code}     -> original URL (TTL = settings.cache_ttl)
    clicks:{code}  -> integer click counter (no TTL, accumulates indefinitely)
"""

URL_PREFIX = "url"
CLICKS_PREFIX = "clicks"


def url_key(short_code: str) -> str:
    return f"{URL_PREFIX}:{short_code}"


def clicks_key(short_code: str) -> str:
    return f"{CLICKS_PREFIX}:{short_code}"
