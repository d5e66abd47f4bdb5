"""Transaction categorization.

Deterministic, local categorization of transactions from their free-text
description, using the user's own history and a keyword dictionary. No
network calls and no model training.
"""

from .history import HistoricalMatch, HistoricalSample, match_history
from .keywords import KeywordDictionary, load_dictionary, score_categories, score_keywords
from .resolver import (
    UNCATEGORIZED,
    CategorizationRequest,
    CategorizationResult,
    CategoryResolver,
    CategorySuggestion,
    Method,
)
from .text import normalize_text

__all__ = [
    "UNCATEGORIZED",
    "CategorizationRequest",
    "CategorizationResult",
    "CategoryResolver",
    "CategorySuggestion",
    "HistoricalMatch",
    "HistoricalSample",
    "KeywordDictionary",
    "Method",
    "load_dictionary",
    "match_history",
    "normalize_text",
    "score_categories",
    "score_keywords",
]
