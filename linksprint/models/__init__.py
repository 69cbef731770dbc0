"""
Database models for LinkSprint.

`URL` holds the transactional link records; `Click` holds the append-only
click events the analytics endpoints aggregate over.
"""

from .url import URL
from .analytics import Click

__all__ = ["URL", "Click"]
