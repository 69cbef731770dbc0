"""
Durable storage for links and click events.

Implements the Strategy Pattern so the services never touch the ORM session.
"""

from .strategies import StoreStrategy, SQLAlchemyStore

__all__ = [
    "StoreStrategy",
    "SQLAlchemyStore",
]
