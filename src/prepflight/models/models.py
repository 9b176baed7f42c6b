"""Database models for the local cache store."""
from sqlalchemy import Column, String, Text

from prepflight.models.base import Base, TimestampMixin


class CacheRecord(Base, TimestampMixin):
    """One serialized cache entry, addressed by its cache key."""

    __tablename__ = "cache_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<CacheRecord(key={self.key!r})>"
