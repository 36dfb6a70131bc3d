"""Database session factory and configuration.

Provides database connectivity and session management for the portal backend.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import get_settings

DATABASE_URL = get_settings().DATABASE_URL

_engine_kwargs = {
    "pool_pre_ping": True,  # Verify connections before using
    "echo": False,
}

# Pool settings only apply to PostgreSQL (not SQLite)
if DATABASE_URL.startswith("sqlite"):
    _engine_kwargs["connect_args"] = {"check_same_thread": False}
    if ":memory:" in DATABASE_URL or DATABASE_URL == "sqlite://":
        _engine_kwargs["poolclass"] = StaticPool
else:
    _engine_kwargs["pool_size"] = 5
    _engine_kwargs["max_overflow"] = 10

engine = create_engine(DATABASE_URL, **_engine_kwargs)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    # Committed rows stay readable without a reload
    expire_on_commit=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @router.post("/submit")
        async def submit(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
