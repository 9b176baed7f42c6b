"""Base model configuration for the local cache database."""
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from prepflight.config import settings


def make_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across sessions."""
    if url.startswith("sqlite") and ":memory:" in url:
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo)


# Create SQLAlchemy engine
engine = make_engine(settings.cache.database_url, settings.cache.echo)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create declarative base class
Base = declarative_base()


class TimestampMixin:
    """Mixin to add timestamp columns to models."""
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


def init_db(bind: Engine = engine) -> None:
    """Initialize database."""
    # Import models so they register on Base.metadata
    from prepflight.models import models  # noqa: F401

    Base.metadata.create_all(bind=bind)  # Create tables if they don't exist
