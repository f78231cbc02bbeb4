"""
Database connection and session management.
"""

from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.config.settings import settings
from app.models.models import Base


def build_engine(database_url: str):
    """
    Create an engine for the given URL.
    In-memory SQLite shares one connection so every session sees the same data.
    """
    is_sqlite = database_url.startswith("sqlite")
    is_memory = is_sqlite and (database_url in ("sqlite://", "sqlite:///:memory:"))

    kwargs = {"echo": False}
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_pre_ping"] = True
    if is_memory:
        kwargs["poolclass"] = StaticPool

    return create_engine(database_url, **kwargs)


engine = build_engine(settings.DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database sessions.
    Usage in FastAPI:
        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for batch jobs: rolled back on error, always closed."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def create_tables(bind=None):
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)


def drop_tables(bind=None):
    """Drop all database tables. USE WITH CAUTION."""
    Base.metadata.drop_all(bind=bind or engine)
