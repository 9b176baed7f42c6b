"""Overall and per-category answer counts."""
from typing import Any, Dict, List

from prepflight.transformers.common import latest_attempts


def empty_stats() -> Dict[str, Any]:
    return {
        "totalQuestions": 0,
        "totalAttempted": 0,
        "correctAnswers": 0,
        "incorrectAnswers": 0,
        "byCategory": {},
    }


def transform(questions: List[Dict[str, Any]], progress: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Count questions per category, then the latest attempt of each question.

    Only questions that carry a category code are counted, and an attempt only
    counts if its question is part of ``questions``.
    """
    stats = empty_stats()
    by_category = stats["byCategory"]
    category_by_question = {}

    for question in questions:
        category = question.get("category") or {}
        code = category.get("code")
        if not code:
            continue
        if code not in by_category:
            by_category[code] = {
                "name": category.get("name"),
                "total": 0,
                "attempted": 0,
                "correct": 0,
            }
        by_category[code]["total"] += 1
        stats["totalQuestions"] += 1
        category_by_question[question.get("id")] = code

    for question_id, attempt in latest_attempts(progress).items():
        code = category_by_question.get(question_id)
        if code is None:
            continue

        stats["totalAttempted"] += 1
        by_category[code]["attempted"] += 1
        if attempt.get("isCorrect"):
            stats["correctAnswers"] += 1
            by_category[code]["correct"] += 1
        else:
            stats["incorrectAnswers"] += 1

    return stats
