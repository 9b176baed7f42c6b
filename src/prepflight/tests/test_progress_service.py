"""Tests for the progress service."""
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from prepflight.auth import SessionAuthProvider
from prepflight.core.cache_manager import CacheManager, CacheType
from prepflight.errors import AuthenticationError, QuestionNotFoundError
from prepflight.services.progress_service import ProgressService


@pytest.fixture
def progress_service(adapter: AsyncMock, cache: CacheManager, auth: SessionAuthProvider) -> ProgressService:
    """Create a progress service instance."""
    return ProgressService(adapter, cache, auth)


@pytest.fixture
def question(adapter: AsyncMock, make_question) -> dict:
    question = make_question("q1", "021", "Airframe")
    question["subcategories"] = [{"code": "021.01", "name": "Fuselage"}]
    adapter.get_question.return_value = question
    return question


@pytest.mark.asyncio
async def test_first_answer_creates_record(progress_service, adapter, user, question) -> None:
    adapter.get_progress_record.return_value = None

    record = await progress_service.update_progress("q1", True, answer_time=42)

    adapter.set_progress_record.assert_awaited_once_with(user.uid, "q1", record)
    assert record["userId"] == user.uid
    assert record["questionId"] == "q1"
    assert record["isCorrect"] is True
    assert record["isSeen"] is True
    assert record["attempts"] == 1
    assert record["category"] == {"code": "021", "name": "Airframe"}
    assert record["subcategories"] == [{"code": "021.01", "name": "Fuselage"}]
    [attempt] = record["attemptHistory"]
    assert attempt["isCorrect"] is True
    assert attempt["answerTime"] == 42
    assert attempt["timestamp"] == record["lastAttempted"]


@pytest.mark.asyncio
async def test_answer_appends_and_prunes_history(progress_service, adapter, question) -> None:
    """Attempts older than thirty days fall out of the history."""
    now = datetime.now(UTC)
    adapter.get_progress_record.return_value = {
        "attempts": 3,
        "attemptHistory": [
            {"isCorrect": False, "timestamp": now - timedelta(days=45), "answerTime": 10},
            {"isCorrect": True, "timestamp": now - timedelta(days=2), "answerTime": 15},
        ],
    }

    record = await progress_service.update_progress("q1", False, answer_time=5)

    assert record["attempts"] == 4
    assert [a["answerTime"] for a in record["attemptHistory"]] == [15, 5]


@pytest.mark.asyncio
async def test_answer_invalidates_analytics_cache(progress_service, adapter, cache, user, question) -> None:
    adapter.get_progress_record.return_value = None
    for cache_type in CacheType:
        cache.set(cache.generate_key(user.uid, cache_type), {"cached": True})

    await progress_service.update_progress("q1", True)

    for cache_type in CacheType:
        assert cache.get(cache.generate_key(user.uid, cache_type)) is None


@pytest.mark.asyncio
async def test_unknown_question(progress_service, adapter) -> None:
    adapter.get_question.return_value = None

    with pytest.raises(QuestionNotFoundError):
        await progress_service.update_progress("missing", True)
    adapter.set_progress_record.assert_not_called()


@pytest.mark.asyncio
async def test_update_requires_user(progress_service, auth) -> None:
    auth.sign_out()
    with pytest.raises(AuthenticationError, match="User not authenticated"):
        await progress_service.update_progress("q1", True)


@pytest.mark.asyncio
async def test_write_errors_propagate(progress_service, adapter, question) -> None:
    adapter.get_progress_record.return_value = None
    adapter.set_progress_record.side_effect = RuntimeError("permission denied")

    with pytest.raises(RuntimeError):
        await progress_service.update_progress("q1", True)


@pytest.mark.asyncio
async def test_reset_all_progress(progress_service, adapter, cache, user) -> None:
    adapter.delete_user_progress.return_value = 12
    cache.set(cache.generate_key(user.uid, "basicStats"), {"cached": True})

    assert await progress_service.reset_all_progress() is True

    adapter.delete_user_progress.assert_awaited_once_with(user.uid, 450)
    assert cache.get(cache.generate_key(user.uid, "basicStats")) is None


def test_prune_history_drops_undated() -> None:
    now = datetime.now(UTC)
    history = [
        {"timestamp": None},
        {"timestamp": (now - timedelta(days=1)).isoformat()},
        {"timestamp": now - timedelta(days=31)},
    ]
    assert ProgressService.prune_history(history, 30) == [history[1]]
