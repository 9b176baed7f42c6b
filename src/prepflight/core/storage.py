"""Key/value substrates behind the analytics cache."""
import logging
from typing import Dict, Optional, Protocol

from sqlalchemy.orm import sessionmaker

from prepflight.models.base import SessionLocal, engine, init_db
from prepflight.models.models import CacheRecord

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Synchronous string store addressed by key."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryStore:
    """Process-local store, mainly for tests."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)


class SqlStore:
    """Persistent store kept in the ``cache_entries`` table."""

    def __init__(self, session_factory: sessionmaker = SessionLocal, create_tables: bool = True):
        self.session_factory = session_factory
        if create_tables:
            init_db(session_factory.kw.get("bind") or engine)

    def get(self, key: str) -> Optional[str]:
        with self.session_factory() as db:
            record = db.get(CacheRecord, key)
            return record.value if record else None

    def set(self, key: str, value: str) -> None:
        with self.session_factory() as db:
            record = db.get(CacheRecord, key)
            if record:
                record.value = value
            else:
                db.add(CacheRecord(key=key, value=value))
            db.commit()

    def remove(self, key: str) -> None:
        with self.session_factory() as db:
            deleted = db.query(CacheRecord).filter(CacheRecord.key == key).delete()
            db.commit()
        if deleted:
            logger.debug(f"Removed cache record {key}")
