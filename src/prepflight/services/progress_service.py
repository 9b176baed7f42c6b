"""Progress service: records answers and wipes a user's progress."""
import logging
from typing import Any, Dict, List

from prepflight.config import settings
from prepflight.core.cache_manager import CacheType
from prepflight.errors import QuestionNotFoundError
from prepflight.services.base_service import BaseAnalyticsService
from prepflight.timeutils import days_ago, now, to_datetime

logger = logging.getLogger(__name__)


class ProgressService(BaseAnalyticsService):
    """Writes to the progress collection on behalf of the signed-in user.

    Unlike analytics reads, failures here propagate to the caller.
    """

    def _invalidate_analytics(self, user_id: str) -> None:
        self.cache.invalidate(user_id, list(CacheType))

    @staticmethod
    def prune_history(history: List[Dict[str, Any]], days: int) -> List[Dict[str, Any]]:
        """Drop attempts older than ``days`` days, and ones without a usable timestamp."""
        cutoff = days_ago(days)
        kept = []
        for attempt in history:
            timestamp = to_datetime(attempt.get("timestamp"))
            if timestamp is not None and timestamp > cutoff:
                kept.append(attempt)
        return kept

    async def update_progress(self, question_id: str, is_correct: bool, answer_time: float = 0) -> Dict[str, Any]:
        """Record one answer and return the stored progress record."""
        user = self.ensure_authenticated()

        question = await self.adapter.get_question(question_id)
        if question is None:
            raise QuestionNotFoundError(question_id)

        existing = await self.adapter.get_progress_record(user.uid, question_id) or {}
        answered_at = now()
        history = list(existing.get("attemptHistory") or [])
        history.append({
            "isCorrect": is_correct,
            "timestamp": answered_at,
            "answerTime": answer_time,
        })

        record = {
            "userId": user.uid,
            "questionId": question_id,
            "isCorrect": is_correct,
            "isSeen": True,
            "lastAttempted": answered_at,
            "category": question.get("category"),
            "subcategories": question.get("subcategories") or [],
            "attempts": (existing.get("attempts") or 0) + 1,
            "attemptHistory": self.prune_history(history, settings.analytics.attempt_history_days),
        }

        await self.adapter.set_progress_record(user.uid, question_id, record)
        self._invalidate_analytics(user.uid)
        logger.info(f"Recorded {'correct' if is_correct else 'incorrect'} answer to {question_id} for user {user.uid}")
        return record

    async def reset_all_progress(self) -> bool:
        """Delete every progress record of the signed-in user."""
        user = self.ensure_authenticated()
        deleted = await self.adapter.delete_user_progress(user.uid, settings.analytics.delete_batch_size)
        self._invalidate_analytics(user.uid)
        logger.info(f"Reset all progress for user {user.uid} ({deleted} records)")
        return True
