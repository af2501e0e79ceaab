"""Database setup for the vessel console."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import settings


def _connect_args(url: str) -> dict:
    # SQLite connections are shared with the request threadpool.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    connect_args=_connect_args(settings.database_url),
    pool_pre_ping=True,
    future=True,
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
Base = declarative_base()


def init_db() -> None:
    """Create database tables if they do not exist."""
    # Model modules register their tables on Base when imported.
    from .models import user, vessel  # noqa: F401

    Base.metadata.create_all(bind=engine)
