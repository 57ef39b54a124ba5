"""Database session management."""

import logging
from collections.abc import Generator
from datetime import datetime, timezone

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from clubhouse.config import get_settings

logger = logging.getLogger("clubhouse.database")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on FK enforcement for every new SQLite connection (needed for ON DELETE CASCADE)."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


settings = get_settings()
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    connect_args={"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {},
)
enable_sqlite_foreign_keys(engine)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def get_db() -> Generator[Session, None, None]:
    """Yield a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create missing tables and optionally seed demo data.

    Errors propagate; the caller treats them as fatal.
    """
    # Register all models with Base.metadata
    from clubhouse.models.message import Message  # noqa: F401
    from clubhouse.models.session import UserSession  # noqa: F401
    from clubhouse.models.user import User  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database schema verified")

    if settings.SEED_DEMO_DATA:
        from clubhouse.seed import seed_demo_data

        with SessionLocal() as db:
            seed_demo_data(db)
