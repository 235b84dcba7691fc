from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from .config import Settings

Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    """
    Build the process-wide connection pool.

    Called once at startup; the engine is handed to the app and the migrator
    explicitly rather than living at module level.
    """
    url = settings.DATABASE_URL
    if url.startswith("sqlite"):
        # SQLite pools do not take size/overflow arguments
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def get_db(request: Request) -> Iterator[Session]:
    """One session per request, always closed so the connection returns to the pool."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
