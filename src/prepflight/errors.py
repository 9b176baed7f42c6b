"""Exceptions raised by the analytics engine."""


class AnalyticsError(Exception):
    """Base class for analytics errors."""


class AuthenticationError(AnalyticsError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class IndexNotReadyError(AnalyticsError):
    """Raised when Firestore rejects a query because its index is still building."""

    def __init__(self, message: str = "Database configuration in progress. Please try again in a few minutes."):
        super().__init__(message)


class QuestionNotFoundError(AnalyticsError):
    """Raised when a progress update references an unknown question."""

    def __init__(self, question_id: str):
        super().__init__(f"Question not found: {question_id}")
        self.question_id = question_id


class InvalidCacheTypeError(ValueError):
    """Raised for a cache type outside the known metric types."""

    def __init__(self, cache_type: object):
        super().__init__(f"Invalid cache type: {cache_type}")
        self.cache_type = cache_type
