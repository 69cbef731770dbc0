from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from linksprint.config import settings


def _build_engine(database_url: str):
    if database_url.startswith("sqlite"):
        # SQLite connections are shared between the request thread and the event loop
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
    )


engine = _build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
