"""Custom exception classes for transaction categorization.

Each exception maps to an error code defined in errors.py. Handlers in
``finance_tracker.api.middleware.error_handler`` turn them into JSON responses.
"""

from typing import Any


class CategorizationError(Exception):
    """Base exception for categorization and transaction errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "CAT_001")
        details: Additional context about the error (for logging)
        http_status: HTTP status code to return (default: 500)
    """

    def __init__(
        self,
        error_code: str,
        details: dict[str, Any] | None = None,
        http_status: int = 500,
    ):
        self.error_code = error_code
        self.details = details or {}
        self.http_status = http_status
        super().__init__(error_code)


class HistoryUnavailableError(CategorizationError):
    """Raised when the user's categorized history cannot be fetched.

    The categorizer never falls back to "uncategorized" in this case, since
    that would report a confident "no match" for what is really a failure.
    """

    def __init__(self, error_code: str = "CAT_001", details: dict[str, Any] | None = None):
        super().__init__(error_code, details, http_status=502)


class CategoryCommitError(CategorizationError):
    """Raised when a category was chosen but could not be saved.

    This is a partial success: ``category``, ``confidence`` and ``method``
    describe the decision that was made.
    """

    def __init__(
        self,
        category: str,
        confidence: int,
        method: str,
        error_code: str = "CAT_002",
        details: dict[str, Any] | None = None,
    ):
        self.category = category
        self.confidence = confidence
        self.method = method
        super().__init__(error_code, details, http_status=500)


class DictionaryLoadError(CategorizationError):
    """Raised when the keyword dictionary file is missing or malformed."""

    pass


class TransactionNotFoundError(CategorizationError):
    """Raised when a transaction id does not exist (or belongs to someone else)."""

    def __init__(self, error_code: str = "API_006", details: dict[str, Any] | None = None):
        super().__init__(error_code, details, http_status=404)
