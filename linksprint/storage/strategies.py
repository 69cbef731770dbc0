"""
Durable store strategies using Strategy Pattern.

The store is the system of record for links and click events:
- Short code uniqueness is enforced here, by the `urls.short_code` unique index
- Connection-level failures surface as StoreUnavailableError and are never retried
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from linksprint.clock import as_utc, utcnow
from linksprint.exceptions import DuplicateKeyError, StoreUnavailableError
from linksprint.models import URL, Click
from linksprint.queue.models import ClickEvent

logger = logging.getLogger(__name__)


class StoreStrategy(ABC):
    """
    Abstract base class for the durable store.

    Similar to a Django model manager: the services talk to this interface,
    never to the ORM session directly.
    """

    @abstractmethod
    def insert_url(
        self,
        short_code: str,
        original_url: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> URL:
        """
        Insert a link.

        Raises:
            DuplicateKeyError: short_code already exists (active or inactive)
        """
        pass

    @abstractmethod
    def get_url(self, short_code: str, active_only: bool = True, not_expired: bool = True) -> Optional[URL]:
        """Fetch a link by exact code match, optionally filtering inactive/expired ones."""
        pass

    @abstractmethod
    def list_active_urls(self, offset: int, limit: int) -> Tuple[List[URL], int]:
        """Active links newest first, plus the total active count."""
        pass

    @abstractmethod
    def deactivate_url(self, short_code: str) -> bool:
        """Soft delete. False if no active link has this code."""
        pass

    @abstractmethod
    def insert_click(self, url: URL, event: ClickEvent) -> Click:
        """Append one click row for a known link."""
        pass

    @abstractmethod
    def insert_clicks(self, events: List[ClickEvent]) -> int:
        """Append click rows in one transaction; events for unknown codes are skipped."""
        pass

    @abstractmethod
    def count_clicks(self, short_code: str) -> int:
        pass

    @abstractmethod
    def count_unique_clicks(self, short_code: str) -> int:
        pass

    @abstractmethod
    def last_clicked_at(self, short_code: str) -> Optional[datetime]:
        pass

    @abstractmethod
    def top_values(self, short_code: str, column: str, limit: int = 5) -> List[Tuple[str, int]]:
        """Most frequent non-empty values of `country`, `city` or `referer`."""
        pass

    @abstractmethod
    def click_trend(self, short_code: str, since: datetime) -> List[Tuple[str, int]]:
        """Clicks per calendar day (UTC) since `since`, oldest first."""
        pass

    @abstractmethod
    def count_active_urls(self, since: Optional[datetime] = None) -> int:
        pass

    @abstractmethod
    def count_all_clicks(self, since: Optional[datetime] = None) -> int:
        pass


class SQLAlchemyStore(StoreStrategy):
    """
    SQLAlchemy implementation over one Session.

    Works with SQLite (development, tests) and PostgreSQL. Each write is a
    single commit, so a failure leaves nothing half-written.
    """

    TOP_VALUE_COLUMNS: Dict[str, object] = {
        "country": Click.country,
        "city": Click.city,
        "referer": Click.referer,
    }

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, operation: str):
        try:
            yield
        except (OperationalError, InterfaceError) as e:
            self.db.rollback()
            logger.error("Store %s failed: %s", operation, e)
            raise StoreUnavailableError(f"Database unavailable during {operation}") from e

    def insert_url(
        self,
        short_code: str,
        original_url: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> URL:
        url = URL(
            short_code=short_code,
            original_url=original_url,
            title=title,
            description=description,
            expires_at=as_utc(expires_at),
            is_active=True,
        )
        with self._guard("insert_url"):
            self.db.add(url)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                raise DuplicateKeyError(f"Short code '{short_code}' already exists") from e
            self.db.refresh(url)
        return url

    def get_url(self, short_code: str, active_only: bool = True, not_expired: bool = True) -> Optional[URL]:
        query = self.db.query(URL).filter(URL.short_code == short_code)
        if active_only:
            query = query.filter(URL.is_active.is_(True))
        if not_expired:
            query = query.filter(or_(URL.expires_at.is_(None), URL.expires_at > utcnow()))
        with self._guard("get_url"):
            return query.first()

    def list_active_urls(self, offset: int, limit: int) -> Tuple[List[URL], int]:
        query = self.db.query(URL).filter(URL.is_active.is_(True))
        with self._guard("list_active_urls"):
            total = query.count()
            urls = (
                query.order_by(URL.created_at.desc(), URL.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
        return urls, total

    def deactivate_url(self, short_code: str) -> bool:
        with self._guard("deactivate_url"):
            url = self.get_url(short_code, active_only=True, not_expired=False)
            if url is None:
                return False
            url.is_active = False
            self.db.commit()
        return True

    def _click_from_event(self, url: URL, event: ClickEvent) -> Click:
        return Click(
            url_id=url.id,
            short_code=url.short_code,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            referer=event.referer,
            country=event.country,
            city=event.city,
            clicked_at=as_utc(event.timestamp),
        )

    def insert_click(self, url: URL, event: ClickEvent) -> Click:
        click = self._click_from_event(url, event)
        with self._guard("insert_click"):
            self.db.add(click)
            self.db.commit()
            self.db.refresh(click)
        return click

    def insert_clicks(self, events: List[ClickEvent]) -> int:
        if not events:
            return 0

        codes = {event.short_code for event in events}
        with self._guard("insert_clicks"):
            urls = {
                url.short_code: url
                for url in self.db.query(URL).filter(URL.short_code.in_(codes)).all()
            }
            stored = 0
            for event in events:
                url = urls.get(event.short_code)
                if url is None:
                    logger.warning("Skipping click for unknown short code %s", event.short_code)
                    continue
                self.db.add(self._click_from_event(url, event))
                stored += 1
            self.db.commit()
        return stored

    def count_clicks(self, short_code: str) -> int:
        with self._guard("count_clicks"):
            return self.db.query(func.count(Click.id)).filter(Click.short_code == short_code).scalar() or 0

    def count_unique_clicks(self, short_code: str) -> int:
        with self._guard("count_unique_clicks"):
            return (
                self.db.query(func.count(func.distinct(Click.ip_address)))
                .filter(Click.short_code == short_code)
                .scalar()
                or 0
            )

    def last_clicked_at(self, short_code: str) -> Optional[datetime]:
        with self._guard("last_clicked_at"):
            value = self.db.query(func.max(Click.clicked_at)).filter(Click.short_code == short_code).scalar()
        return as_utc(value)

    def top_values(self, short_code: str, column: str, limit: int = 5) -> List[Tuple[str, int]]:
        if column not in self.TOP_VALUE_COLUMNS:
            raise ValueError(f"Unsupported analytics column: {column}")
        field = self.TOP_VALUE_COLUMNS[column]
        count = func.count(Click.id).label("count")

        with self._guard("top_values"):
            rows = (
                self.db.query(field, count)
                .filter(Click.short_code == short_code, field.isnot(None), field != "")
                .group_by(field)
                .order_by(count.desc(), field)
                .limit(limit)
                .all()
            )
        return [(value, total) for value, total in rows]

    def click_trend(self, short_code: str, since: datetime) -> List[Tuple[str, int]]:
        day = func.date(Click.clicked_at).label("day")
        with self._guard("click_trend"):
            rows = (
                self.db.query(day, func.count(Click.id))
                .filter(Click.short_code == short_code, Click.clicked_at >= since)
                .group_by(day)
                .order_by(day)
                .all()
            )
        # SQLite returns 'YYYY-MM-DD' strings, PostgreSQL returns date objects
        return [(str(value), total) for value, total in rows]

    def count_active_urls(self, since: Optional[datetime] = None) -> int:
        query = self.db.query(func.count(URL.id)).filter(URL.is_active.is_(True))
        if since is not None:
            query = query.filter(URL.created_at >= since)
        with self._guard("count_active_urls"):
            return query.scalar() or 0

    def count_all_clicks(self, since: Optional[datetime] = None) -> int:
        query = self.db.query(func.count(Click.id))
        if since is not None:
            query = query.filter(Click.clicked_at >= since)
        with self._guard("count_all_clicks"):
            return query.scalar() or 0
