"""Analytics service answering dashboard queries for the signed-in user."""
import asyncio
import logging
from typing import Any, Dict, Optional

from prepflight.auth import AuthUser
from prepflight.config import settings
from prepflight.core.cache_manager import CacheType
from prepflight.errors import AuthenticationError, InvalidCacheTypeError
from prepflight.services.base_service import BaseAnalyticsService
from prepflight.timeutils import days_ago, months_ago
from prepflight.transformers import basic_stats, skills, time_series

logger = logging.getLogger(__name__)


def default_basic_stats() -> Dict[str, Any]:
    return basic_stats.empty_stats()


def default_monthly_progress() -> Dict[str, Any]:
    return {"months": [], "categories": []}


def default_study_time() -> Dict[str, Any]:
    return {"labels": [], "data": []}


def default_skills() -> Dict[str, Any]:
    return {"skillsBreakdown": []}


def default_dashboard_stats() -> Dict[str, Any]:
    return {
        **default_basic_stats(),
        "monthlyProgress": default_monthly_progress(),
        "studyTime": default_study_time(),
    }


def default_user_progress() -> Dict[str, Any]:
    return {
        **default_basic_stats(),
        "monthlyProgress": default_monthly_progress(),
        "studyTime": default_study_time(),
        "skillsBreakdown": [],
        "performance": {"correct": 0, "incorrect": 0},
    }


class AnalyticsService(BaseAnalyticsService):
    """High-level analytics for the signed-in user.

    Public reads never raise: any failure is logged and the operation's
    zero-valued default is returned instead, so analytics cannot block the
    study flow. The only exception is an invalid cache type, which is a bug.
    """

    # Computations, uncached

    async def _compute_basic_stats(self, user_id: str) -> Dict[str, Any]:
        questions, progress = await asyncio.gather(
            self.adapter.get_all_questions(),
            self.adapter.get_user_progress(user_id),
        )
        return basic_stats.transform(questions, progress)

    async def _compute_monthly_progress(self, user_id: str) -> Dict[str, Any]:
        lookback = settings.analytics.monthly_lookback_months
        progress = await self.adapter.get_recent_progress(user_id, months_ago(lookback))
        return time_series.transform_monthly_progress(progress, months=lookback)

    async def _compute_recent_study_time(self, user_id: str) -> Dict[str, Any]:
        since = days_ago(settings.analytics.study_time_lookback_days)
        progress = await self.adapter.get_recent_progress(user_id, since)
        return time_series.transform_study_time(progress, since=since)

    async def _compute_user_progress(self, user_id: str) -> Dict[str, Any]:
        progress = await self.adapter.get_user_progress(user_id)
        stats, monthly_progress, study_time = await asyncio.gather(
            self.get_basic_stats(),
            self.get_monthly_progress(),
            self.get_recent_study_time(),
        )
        skills_analysis = skills.transform(progress)

        combined = {
            **stats,
            "monthlyProgress": monthly_progress,
            "studyTime": study_time,
            "skillsBreakdown": skills_analysis["skillsBreakdown"],
            "performance": {
                "correct": stats["correctAnswers"],
                "incorrect": stats["incorrectAnswers"],
            },
        }
        logger.debug(f"User progress for {user_id}: {combined}")
        return combined

    @staticmethod
    def _resolve_user_id(user: AuthUser, user_id: Optional[str]) -> str:
        if user_id is None or user_id == user.uid:
            return user.uid
        raise AuthenticationError(f"User {user.uid} cannot read progress of {user_id}")

    # Cached reads

    async def get_basic_stats(self) -> Dict[str, Any]:
        """Totals and per-category counts over the latest attempt of each question."""
        try:
            user = self.ensure_authenticated()
            return await self.get_with_cache(
                user.uid, CacheType.BASIC_STATS, lambda: self._compute_basic_stats(user.uid)
            )
        except InvalidCacheTypeError:
            raise
        except Exception as e:
            return self.create_error_response("getting basic stats", default_basic_stats(), e)

    async def get_monthly_progress(self) -> Dict[str, Any]:
        """Monthly correct/incorrect totals for the last six months."""
        try:
            user = self.ensure_authenticated()
            return await self.get_with_cache(
                user.uid, CacheType.MONTHLY_PROGRESS, lambda: self._compute_monthly_progress(user.uid)
            )
        except InvalidCacheTypeError:
            raise
        except Exception as e:
            return self.create_error_response("getting monthly progress", default_monthly_progress(), e)

    async def get_recent_study_time(self) -> Dict[str, Any]:
        """Minutes studied per weekday over the last seven days."""
        try:
            user = self.ensure_authenticated()
            return await self.get_with_cache(
                user.uid, CacheType.RECENT_STUDY_TIME, lambda: self._compute_recent_study_time(user.uid)
            )
        except InvalidCacheTypeError:
            raise
        except Exception as e:
            return self.create_error_response("getting study time", default_study_time(), e)

    async def get_skills_analysis(self) -> Dict[str, Any]:
        """Skill scores per category, computed fresh on every call."""
        try:
            user = self.ensure_authenticated()
            progress = await self.adapter.get_user_progress(user.uid)
            return skills.transform(progress)
        except Exception as e:
            return self.create_error_response("getting skills analysis", default_skills(), e)

    async def get_dashboard_stats(self) -> Dict[str, Any]:
        """Basic stats merged with monthly progress and study time."""
        try:
            stats, monthly_progress, study_time = await asyncio.gather(
                self.get_basic_stats(),
                self.get_monthly_progress(),
                self.get_recent_study_time(),
            )
            return {
                **stats,
                "monthlyProgress": monthly_progress or default_monthly_progress(),
                "studyTime": study_time or default_study_time(),
            }
        except InvalidCacheTypeError:
            raise
        except Exception as e:
            return self.create_error_response("getting dashboard stats", default_dashboard_stats(), e)

    async def get_user_progress(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Everything the progress page shows, cached as one bundle."""
        try:
            user = self.ensure_authenticated()
            user_id = self._resolve_user_id(user, user_id)
            return await self.get_with_cache(
                user_id, CacheType.USER_PROGRESS, lambda: self._compute_user_progress(user.uid)
            )
        except InvalidCacheTypeError:
            raise
        except Exception as e:
            return self.create_error_response("getting user progress", default_user_progress(), e)

    # Writes and refreshes

    async def reset_study_time(self) -> bool:
        """Zero ``answerTime`` on every record attempted in the last seven days.

        Weekday totals are summed from ``attemptHistory``, which this leaves alone,
        so the recomputed study-time chart is unchanged.
        """
        try:
            user = self.ensure_authenticated()
            since = days_ago(settings.analytics.study_time_lookback_days)
            progress = await self.adapter.get_recent_progress(user.uid, since)

            updates = [{"id": record["id"], "answerTime": 0} for record in progress]
            await self.adapter.batch_update_study_time(user.uid, updates)
            self.cache.invalidate(user.uid, [CacheType.RECENT_STUDY_TIME, CacheType.USER_PROGRESS])
            logger.info(f"Reset study time on {len(updates)} records for user {user.uid}")
            return True
        except InvalidCacheTypeError:
            raise
        except Exception as e:
            return self.create_error_response("resetting study time", False, e)

    async def refresh_basic_stats(self) -> Dict[str, Any]:
        user = self.ensure_authenticated()
        return await self.refresh_cache(
            user.uid, CacheType.BASIC_STATS, lambda: self._compute_basic_stats(user.uid)
        )

    async def refresh_monthly_progress(self) -> Dict[str, Any]:
        user = self.ensure_authenticated()
        return await self.refresh_cache(
            user.uid, CacheType.MONTHLY_PROGRESS, lambda: self._compute_monthly_progress(user.uid)
        )

    async def refresh_recent_study_time(self) -> Dict[str, Any]:
        user = self.ensure_authenticated()
        return await self.refresh_cache(
            user.uid, CacheType.RECENT_STUDY_TIME, lambda: self._compute_recent_study_time(user.uid)
        )

    async def refresh_user_progress(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Recompute every cached metric, then the combined bundle."""
        try:
            user = self.ensure_authenticated()
            user_id = self._resolve_user_id(user, user_id)

            results = await asyncio.gather(
                self.refresh_basic_stats(),
                self.refresh_monthly_progress(),
                self.refresh_recent_study_time(),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, InvalidCacheTypeError):
                    raise result
                if isinstance(result, Exception):
                    logger.warning(f"Partial refresh failure for user {user_id}: {result}")

            return await self.refresh_cache(
                user_id, CacheType.USER_PROGRESS, lambda: self._compute_user_progress(user.uid)
            )
        except InvalidCacheTypeError:
            raise
        except Exception as e:
            return self.create_error_response("refreshing user progress", default_user_progress(), e)
