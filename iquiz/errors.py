"""
Exceptions raised while refreshing the quiz catalog.
"""


class QuizStoreError(Exception):
    """Base exception for catalog refresh errors."""
    pass


class BadURLError(QuizStoreError):
    """Raised when the configured source is not a usable http(s) URL."""
    pass


class NoConnectivityError(QuizStoreError):
    """Raised when the source cannot be reached at all."""
    pass


class NoDataError(QuizStoreError):
    """Raised when a request completes without a response body."""
    pass


class QuizDecodeError(QuizStoreError):
    """Raised when a catalog body is not valid JSON or has the wrong shape."""
    pass


class CacheUnavailableError(QuizStoreError):
    """Raised when the cache file is missing, unreadable or malformed."""
    pass
