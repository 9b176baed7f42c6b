"""Per-category skill scores.

A category's skill score is a weighted blend of four components, each on a
0-100 scale:

* accuracy: share of correct answers over the whole attempt history
* speed: 100 up to a 30 second average answer time, then exponential decay
* consistency: correct answers among the five most recent attempts, divided
  by the total number of attempts
* retention: exponential decay with days since the category was last
  practised, never below 5

The weighted sum is clamped to [0, 100]. Categories without a usable category
snapshot are pooled under ``UNKNOWN`` and listed last.
"""
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from prepflight.timeutils import now as utc_now, to_datetime
from prepflight.transformers.common import category_of, last_attempted

ACCURACY_WEIGHT = 0.40
SPEED_WEIGHT = 0.15
CONSISTENCY_WEIGHT = 0.30
RETENTION_WEIGHT = 0.15

SPEED_GRACE_SECONDS = 30
SPEED_DECAY_SECONDS = 60
CONSISTENCY_WINDOW = 5
RETENTION_DECAY_DAYS = 45
RETENTION_FLOOR = 5
DEFAULT_DAYS_SINCE_ATTEMPT = 30  # used when a category has no lastAttempted


def speed_score(avg_time: float) -> float:
    """100 inside the grace period, then ``100·e^(-(t-30)/60)``."""
    return 100 * math.exp(-max(0, avg_time - SPEED_GRACE_SECONDS) / SPEED_DECAY_SECONDS)


def consistency_score(recent_correct: int, attempts: int) -> float:
    # TODO: confirm with product whether the denominator should be min(5, attempts)
    if attempts <= 0:
        return 0.0
    return recent_correct / attempts * 100


def retention_score(days_since_last_attempt: float) -> float:
    return max(RETENTION_FLOOR, 100 * math.exp(-days_since_last_attempt / RETENTION_DECAY_DAYS))


def _new_category(code: str, name: str, is_default: bool) -> Dict[str, Any]:
    return {
        "name": name,
        "code": code,
        "isDefault": is_default,
        "attempts": 0,
        "correctCount": 0,
        "totalTime": 0,
        "history": [],
        "lastAttempted": None,
    }


def _score(stats: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    attempts = stats["attempts"]
    accuracy = stats["correctCount"] / attempts * 100 if attempts > 0 else 0.0
    avg_time = stats["totalTime"] / attempts if attempts > 0 else 0.0

    # Newest first; attempts without a timestamp sort last
    recent = sorted(
        stats["history"],
        key=lambda a: (a[0] is not None, a[0] or now),
        reverse=True,
    )[:CONSISTENCY_WINDOW]
    recent_correct = sum(1 for _, is_correct in recent if is_correct)

    if stats["lastAttempted"] is not None:
        days_since = max(0.0, (now - stats["lastAttempted"]).total_seconds() / 86400)
    else:
        days_since = DEFAULT_DAYS_SINCE_ATTEMPT

    components = {
        "accuracy": accuracy,
        "speed": speed_score(avg_time),
        "consistency": consistency_score(recent_correct, attempts),
        "retention": retention_score(days_since),
    }
    weighted = (
        components["accuracy"] * ACCURACY_WEIGHT
        + components["speed"] * SPEED_WEIGHT
        + components["consistency"] * CONSISTENCY_WEIGHT
        + components["retention"] * RETENTION_WEIGHT
    )

    return {
        "name": stats["name"],
        "code": stats["code"],
        "isDefault": stats["isDefault"],
        "skillScore": min(100.0, max(0.0, weighted)),
        "attempts": attempts,
        "accuracy": accuracy,
        "components": components,
    }


def transform(progress: Optional[List[Dict[str, Any]]], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Score every category present in ``progress``.

    Returns ``{"skillsBreakdown": [...]}`` with regular categories first, each
    group ordered by descending skill score.
    """
    if not isinstance(progress, list):
        return {"skillsBreakdown": []}

    now = to_datetime(now) or utc_now()
    categories: Dict[str, Dict[str, Any]] = {}

    for record in progress:
        if not isinstance(record, dict):
            continue
        code, name, is_default = category_of(record)
        stats = categories.get(code)
        if stats is None:
            stats = categories[code] = _new_category(code, name, is_default)

        for attempt in record.get("attemptHistory") or []:
            is_correct = bool(attempt.get("isCorrect"))
            stats["attempts"] += 1
            stats["correctCount"] += int(is_correct)
            stats["totalTime"] += attempt.get("answerTime") or 0
            stats["history"].append((to_datetime(attempt.get("timestamp")), is_correct))

        attempted = last_attempted(record)
        if attempted is not None and (stats["lastAttempted"] is None or attempted > stats["lastAttempted"]):
            stats["lastAttempted"] = attempted

    breakdown = [_score(stats, now) for stats in categories.values()]
    breakdown.sort(key=lambda s: (s["isDefault"], -s["skillScore"], s["code"]))
    return {"skillsBreakdown": breakdown}
