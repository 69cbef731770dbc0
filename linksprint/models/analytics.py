from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from linksprint.database.connection import Base


class Click(Base):
    """
    One resolved redirect (or explicitly tracked click).

    Append-only. Rows are the system of record for analytics; the cache
    click counter is a separate, approximate metric and is never reconciled
    against this table.
    """
    __tablename__ = "analytics"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    url_id = Column(Integer, ForeignKey("urls.id"), nullable=False, index=True)
    short_code = Column(String(10), nullable=False, index=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    referer = Column(Text, nullable=True)
    country = Column(String(64), nullable=True)
    city = Column(String(128), nullable=True)
    clicked_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    url = relationship("URL", back_populates="clicks")
