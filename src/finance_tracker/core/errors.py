"""Error codes and user-friendly messages.

Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

ERROR_CATALOG: dict[str, dict] = {
    "CAT_001": {
        "code": "CAT_001",
        "message": "Could not fetch categorized transaction history",
        "user_message": "We couldn't categorize this transaction right now.",
        "suggestion": "Please try again in a few moments.",
        "retry_allowed": True,
    },
    "CAT_002": {
        "code": "CAT_002",
        "message": "Category was determined but could not be saved",
        "user_message": "We found a category but couldn't save it.",
        "suggestion": "Please try again, or set the category manually.",
        "retry_allowed": True,
    },
    "CAT_003": {
        "code": "CAT_003",
        "message": "Keyword dictionary could not be loaded",
        "user_message": "Automatic categorization is unavailable.",
        "suggestion": "Please set the category manually. Contact support if this persists.",
        "retry_allowed": False,
    },
    "API_006": {
        "code": "API_006",
        "message": "Transaction not found",
        "user_message": "We couldn't find this transaction.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "VAL_001": {
        "code": "VAL_001",
        "message": "Request data failed validation",
        "user_message": "Invalid input data",
        "suggestion": "Please check your input and try again",
        "retry_allowed": True,
    },
    "DB_001": {
        "code": "DB_001",
        "message": "Database operation failed",
        "user_message": "A database error occurred",
        "suggestion": "Please try again later",
        "retry_allowed": True,
    },
    "DB_002": {
        "code": "DB_002",
        "message": "Resource already exists",
        "user_message": "This record already exists",
        "suggestion": "Please check if the record was already created",
        "retry_allowed": False,
    },
    "SYS_001": {
        "code": "SYS_001",
        "message": "Internal server error",
        "user_message": "An unexpected error occurred",
        "suggestion": "Please try again later or contact support",
        "retry_allowed": True,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Args:
        error_code: Error code from the catalog

    Returns:
        Dict with error details. Unknown codes get a generic definition.
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]
