"""Tests for database models."""
from typing import Generator

import pytest
from faker import Faker
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from prepflight.models.base import SessionLocal, init_db
from prepflight.models.models import CacheRecord

fake = Faker()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.query(CacheRecord).delete()
        db.commit()
        db.close()


def test_cache_record_creation(db: Session) -> None:
    """Test cache record creation."""
    key = f"basic-stats-{fake.uuid4()}"
    record = CacheRecord(key=key, value='{"timestamp": 0, "data": null}')
    db.add(record)
    db.commit()
    db.refresh(record)

    assert record.created_at is not None
    assert record.updated_at is not None
    assert repr(record) == f"<CacheRecord(key={key!r})>"


def test_cache_record_key_unique(db: Session) -> None:
    """Test that cache keys are unique."""
    db.add(CacheRecord(key="user-progress-u1", value="{}"))
    db.commit()
    db.expunge_all()

    db.add(CacheRecord(key="user-progress-u1", value="{}"))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
