"""Test configuration."""
import os
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ.setdefault("CACHE_DATABASE_URL", "sqlite:///:memory:")

# Load test environment variables
test_env_path = Path(__file__).parents[3] / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from prepflight.auth import AuthUser, SessionAuthProvider
from prepflight.core.cache_manager import CacheManager
from prepflight.core.firestore_adapter import FirestoreAdapter
from prepflight.core.storage import MemoryStore

fake = Faker()


class FakeClock:
    """Settable clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def user() -> AuthUser:
    """Create a signed-in user."""
    return AuthUser(uid=fake.uuid4(), email=fake.email(), email_verified=True)


@pytest.fixture
def auth(user: AuthUser) -> SessionAuthProvider:
    return SessionAuthProvider(user)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(store: MemoryStore, clock: FakeClock) -> CacheManager:
    return CacheManager(store, ttl_seconds=3600, clock=clock)


@pytest.fixture
def adapter() -> AsyncMock:
    """Adapter double with every coroutine method mocked."""
    adapter = AsyncMock(spec=FirestoreAdapter)
    adapter.get_all_questions.return_value = []
    adapter.get_user_progress.return_value = []
    adapter.get_recent_progress.return_value = []
    return adapter


@pytest.fixture
def make_question() -> Callable[..., Dict[str, Any]]:
    """Factory for question documents."""
    def _make(question_id: Optional[str] = None, code: Optional[str] = "021", name: str = "Airframe") -> Dict[str, Any]:
        question = {
            "id": question_id or fake.uuid4(),
            "question": fake.sentence(),
            "options": [fake.word() for _ in range(4)],
            "correct_answer": 0,
            "explanation": fake.sentence(),
            "subcategories": [],
        }
        if code is not None:
            question["category"] = {"code": code, "name": name}
        return question
    return _make


@pytest.fixture
def make_progress(user: AuthUser) -> Callable[..., Dict[str, Any]]:
    """Factory for progress records.

    ``history`` is a list of ``(is_correct, timestamp, answer_time)`` tuples.
    """
    def _make(
        question_id: str,
        is_correct: bool = True,
        last_attempted: Optional[datetime] = None,
        code: Optional[str] = "021",
        name: str = "Airframe",
        history: Optional[List[tuple]] = None,
    ) -> Dict[str, Any]:
        last_attempted = last_attempted or datetime.now(UTC)
        record = {
            "id": f"{user.uid}_{question_id}",
            "userId": user.uid,
            "questionId": question_id,
            "isCorrect": is_correct,
            "isSeen": True,
            "lastAttempted": last_attempted,
            "attempts": len(history) if history else 1,
            "attemptHistory": [
                {"isCorrect": correct, "timestamp": timestamp, "answerTime": answer_time}
                for correct, timestamp, answer_time in (history or [(is_correct, last_attempted, 20)])
            ],
        }
        if code is not None:
            record["category"] = {"code": code, "name": name}
        return record
    return _make


@pytest.fixture
def now() -> datetime:
    return datetime.now(UTC)


@pytest.fixture
def yesterday(now: datetime) -> datetime:
    return now - timedelta(days=1)
