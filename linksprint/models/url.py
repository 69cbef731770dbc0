from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from linksprint.database.connection import Base


class URL(Base):
    """
    A short link.

    `short_code` uniqueness is enforced here (unique index) and nowhere else;
    the cache only holds a projection of `original_url` keyed by code.
    Links are never physically deleted, only deactivated.
    """
    __tablename__ = "urls"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    # unique=True creates the index the create path relies on for conflicts
    short_code = Column(String(10), unique=True, nullable=False, index=True)
    original_url = Column(Text, nullable=False)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    created_by = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    clicks = relationship("Click", back_populates="url", lazy="select")

    def __repr__(self) -> str:
        return f"<URL(id={self.id}, short_code='{self.short_code}', is_active={self.is_active})>"
