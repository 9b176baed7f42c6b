"""Time-bucketed views of progress: monthly results and weekday study time."""
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from prepflight.config import MONTHLY_LOOKBACK_MONTHS
from prepflight.timeutils import to_datetime
from prepflight.transformers.common import DEFAULT_CATEGORY_CODE, category_of, is_newer, last_attempted

DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def month_key(moment: datetime) -> str:
    """``YYYY-M`` key without zero padding, e.g. ``2024-3``."""
    return f"{moment.year}-{moment.month}"


def _month_sort_key(key: str) -> Tuple[int, int]:
    year, month = key.split("-")
    return int(year), int(month)


def weekday_index(moment: datetime) -> int:
    """0 for Sunday through 6 for Saturday."""
    return (moment.weekday() + 1) % 7


def transform_monthly_progress(
    progress: List[Dict[str, Any]],
    months: int = MONTHLY_LOOKBACK_MONTHS,
) -> Dict[str, Any]:
    """Correct/incorrect totals per month, overall and per category.

    Within a month each question counts once, by its latest attempt. Only the
    most recent ``months`` months that have activity are returned, oldest first.
    """
    by_month: Dict[str, Dict[str, Dict[str, Any]]] = {}
    categories: Dict[str, Dict[str, str]] = {}

    for record in progress:
        attempted = last_attempted(record)
        question_id = record.get("questionId")
        if attempted is None or question_id is None:
            continue
        key = month_key(attempted)
        questions = by_month.setdefault(key, {})
        if is_newer(record, questions.get(question_id)):
            questions[question_id] = record

        code, name, _ = category_of(record)
        categories.setdefault(code, {"code": code, "name": name})

    category_list = sorted(
        categories.values(),
        key=lambda c: (c["code"] == DEFAULT_CATEGORY_CODE, c["code"]),
    )

    month_keys = sorted(by_month, key=_month_sort_key)[-months:] if months > 0 else []
    monthly_stats = []
    for key in month_keys:
        records = list(by_month[key].values())
        breakdown = {
            c["code"]: {"code": c["code"], "name": c["name"], "correct": 0, "incorrect": 0}
            for c in category_list
        }
        correct = 0
        for record in records:
            code, _, _ = category_of(record)
            if record.get("isCorrect"):
                correct += 1
                breakdown[code]["correct"] += 1
            else:
                breakdown[code]["incorrect"] += 1

        monthly_stats.append({
            "month": key,
            "total": len(records),
            "correct": correct,
            "incorrect": len(records) - correct,
            "byCategory": list(breakdown.values()),
        })

    return {"months": monthly_stats, "categories": category_list}


def transform_study_time(
    progress: List[Dict[str, Any]],
    since: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Minutes studied per weekday, summed over every attempt in the history.

    Any attempt with a positive answer time counts for at least one minute.
    Attempts older than ``since`` are ignored when it is given.
    """
    daily_minutes = [0] * 7
    since = to_datetime(since)

    for record in progress:
        history = record.get("attemptHistory")
        if not isinstance(history, list):
            continue
        for attempt in history:
            timestamp = to_datetime(attempt.get("timestamp"))
            seconds = attempt.get("answerTime") or 0
            if timestamp is None or seconds <= 0:
                continue
            if since is not None and timestamp < since:
                continue
            daily_minutes[weekday_index(timestamp)] += max(1, math.ceil(seconds / 60))

    return {"labels": list(DAY_NAMES), "data": daily_minutes}
