"""Helpers shared by the transformers."""
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from prepflight.timeutils import to_datetime

DEFAULT_CATEGORY_CODE = "UNKNOWN"
DEFAULT_CATEGORY_NAME = "Uncategorized"


def category_of(record: Dict[str, Any]) -> Tuple[str, str, bool]:
    """Return ``(code, name, is_default)`` for a record's category snapshot."""
    category = record.get("category")
    if isinstance(category, dict) and category.get("code"):
        return category["code"], category.get("name") or category["code"], False
    return DEFAULT_CATEGORY_CODE, DEFAULT_CATEGORY_NAME, True


def last_attempted(record: Dict[str, Any]) -> Optional[datetime]:
    return to_datetime(record.get("lastAttempted"))


def is_newer(candidate: Dict[str, Any], existing: Optional[Dict[str, Any]]) -> bool:
    """Whether ``candidate`` should replace ``existing`` as the latest attempt."""
    if existing is None:
        return True
    candidate_time = last_attempted(candidate)
    if candidate_time is None:
        return False
    existing_time = last_attempted(existing)
    return existing_time is None or candidate_time > existing_time


def latest_attempts(records: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Keep only the most recently attempted record per ``questionId``."""
    latest: Dict[str, Dict[str, Any]] = {}
    for record in records:
        question_id = record.get("questionId")
        if question_id is None:
            continue
        if is_newer(record, latest.get(question_id)):
            latest[question_id] = record
    return latest
