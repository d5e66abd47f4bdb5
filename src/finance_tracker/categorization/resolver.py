"""Category resolution: history first, then keywords, then give up.

The resolver depends on two narrow ports instead of a database session:

- ``HistorySource`` supplies the user's recent categorized transactions.
- ``CategoryWriter`` saves the chosen category onto a transaction.

``categorize`` is the committing flow used when a transaction is created or
re-categorized. ``suggest`` is a read-only preview used by the
re-categorization screen; it is more permissive and may propose a dictionary
category the user does not have yet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, Sequence
from uuid import UUID

from finance_tracker.categorization.history import HistoricalMatch, HistoricalSample, match_history
from finance_tracker.categorization.keywords import CategoryScore, KeywordDictionary, score_categories
from finance_tracker.categorization.text import normalize_text
from finance_tracker.core.exceptions import (
    CategoryCommitError,
    HistoryUnavailableError,
    TransactionNotFoundError,
)

logger = logging.getLogger(__name__)

UNCATEGORIZED = "uncategorized"
DEFAULT_SAMPLE_LIMIT = 100

RECONCILIATION_BONUS = 15
CONFIDENCE_PER_POINT = 5
MAX_KEYWORD_CONFIDENCE = 95
WEAK_HISTORY_CONFIDENCE = 30


class Method(str, Enum):
    HISTORICAL = "historical"
    KEYWORDS = "keywords"
    NONE = "none"


class HistorySource(Protocol):
    async def fetch_samples(self, user_id: UUID, limit: int) -> list[HistoricalSample]:
        """Return up to ``limit`` of the user's most recent categorized transactions."""
        ...


class CategoryWriter(Protocol):
    async def set_category(self, transaction_id: UUID, user_id: UUID, category: str) -> None:
        """Save ``category`` onto the user's transaction.

        Raises ``TransactionNotFoundError`` when the transaction does not exist
        or belongs to another user.
        """
        ...


@dataclass(frozen=True)
class CategorizationRequest:
    transaction_id: UUID | None
    description: str | None
    user_id: UUID
    existing_category_names: Sequence[str] = ()


@dataclass(frozen=True)
class CategorizationResult:
    category: str
    confidence: int
    method: Method


@dataclass
class CategorySuggestion:
    category: str | None
    kind: str | None
    confidence: int
    method: Method
    reasons: list[str] = field(default_factory=list)
    is_new_category: bool = False


def find_existing(category: str, existing_category_names: Sequence[str]) -> str | None:
    """Return the user's spelling of ``category``, ignoring case and accents."""
    wanted = normalize_text(category)
    for existing in existing_category_names:
        if normalize_text(existing) == wanted:
            return existing
    return None


def exact_candidates(scores: Sequence[CategoryScore]) -> list[CategoryScore]:
    """Categories with at least one verbatim keyword hit, best first."""
    return sorted((s for s in scores if s.exact), key=lambda s: s.score, reverse=True)


def keyword_confidence(score: int) -> int:
    return min(MAX_KEYWORD_CONFIDENCE, score * CONFIDENCE_PER_POINT)


class CategoryResolver:
    """Pick a category for a transaction description.

    Args:
        dictionary: Keyword dictionary to score against
        history: Source of the user's categorized history
        writer: Where chosen categories are saved
        sample_limit: Maximum number of history samples to compare against
        uncategorized_label: Sentinel category used when nothing matches
    """

    def __init__(
        self,
        dictionary: KeywordDictionary,
        history: HistorySource,
        writer: CategoryWriter,
        sample_limit: int = DEFAULT_SAMPLE_LIMIT,
        uncategorized_label: str = UNCATEGORIZED,
    ):
        self.dictionary = dictionary
        self.history = history
        self.writer = writer
        self.sample_limit = sample_limit
        self.uncategorized_label = uncategorized_label

    async def _historical_match(self, request: CategorizationRequest) -> HistoricalMatch:
        try:
            samples = await self.history.fetch_samples(request.user_id, self.sample_limit)
        except HistoryUnavailableError:
            raise
        except Exception as e:
            raise HistoryUnavailableError(details={"error_type": type(e).__name__}) from e
        return match_history(request.description or "", samples)

    async def _commit(self, request: CategorizationRequest, result: CategorizationResult) -> None:
        try:
            await self.writer.set_category(request.transaction_id, request.user_id, result.category)
        except Exception as e:
            error = CategoryCommitError(
                category=result.category,
                confidence=result.confidence,
                method=result.method.value,
                details={"error_type": type(e).__name__},
            )
            if isinstance(e, TransactionNotFoundError):
                error.http_status = e.http_status
            raise error from e

    def reconcile(self, scores: Sequence[CategoryScore], existing_category_names: Sequence[str]) -> tuple[str, int] | None:
        """Map keyword scores onto one of the user's categories.

        Returns the user's category name and its final score, or None.
        """
        candidates = exact_candidates(scores)
        if not candidates:
            return None

        best: tuple[str, int] | None = None
        for candidate in candidates:
            existing = find_existing(candidate.category, existing_category_names)
            if existing is None:
                continue
            boosted = candidate.score + RECONCILIATION_BONUS
            if best is None or boosted > best[1]:
                best = (existing, boosted)
        if best is not None:
            return best

        top = candidates[0]
        existing = find_existing(top.category, existing_category_names)
        if existing is not None:
            return existing, top.score
        return None

    async def categorize(self, request: CategorizationRequest) -> CategorizationResult:
        """Categorize a transaction and save the result.

        Raises:
            HistoryUnavailableError: If history could not be fetched
            CategoryCommitError: If a category was chosen but not saved
        """
        historical = await self._historical_match(request)
        # History may name a category the user has since removed; skip it then.
        historical_category = (
            find_existing(historical.category, request.existing_category_names)
            if historical.accepted
            else None
        )
        if historical_category is not None:
            result = CategorizationResult(
                category=historical_category,
                confidence=historical.confidence,
                method=Method.HISTORICAL,
            )
            await self._commit(request, result)
            return result

        scores = score_categories(request.description or "", self.dictionary)
        reconciled = self.reconcile(scores, request.existing_category_names)
        if reconciled is None:
            return CategorizationResult(category=self.uncategorized_label, confidence=0, method=Method.NONE)

        category, best_score = reconciled
        result = CategorizationResult(
            category=category,
            confidence=keyword_confidence(best_score),
            method=Method.KEYWORDS,
        )
        await self._commit(request, result)
        return result

    async def suggest(self, request: CategorizationRequest) -> CategorySuggestion:
        """Preview a category without saving anything."""
        description = request.description or ""
        if not description.strip():
            return CategorySuggestion(
                category=None,
                kind=None,
                confidence=0,
                method=Method.NONE,
                reasons=["No description to categorize"],
            )

        existing_names = request.existing_category_names
        reasons: list[str] = []
        historical = await self._historical_match(request)
        if historical.accepted:
            reasons.append(
                f'Categorized as "{historical.category}" from {historical.count} similar past transactions'
            )
            return CategorySuggestion(
                category=historical.category,
                kind=self.dictionary.kind_of(historical.category) or historical.kind,
                confidence=historical.confidence,
                method=Method.HISTORICAL,
                reasons=reasons,
            )
        if historical.category:
            reasons.append(f'Found 1 similar past transaction categorized as "{historical.category}"')

        scores = score_categories(description, self.dictionary)
        candidates = exact_candidates(scores) or sorted(scores, key=lambda s: s.score, reverse=True)
        working = [[c.category, c.score, c.exact] for c in candidates]

        best_category: str | None = None
        best_score = 0
        if existing_names and working:
            for index, entry in enumerate(working):
                existing = find_existing(entry[0], existing_names)
                if existing is None or not entry[2]:
                    continue
                entry[1] += RECONCILIATION_BONUS
                # Compared against the leader's current, possibly boosted, score.
                if index == 0 or entry[1] > working[0][1]:
                    best_category, best_score = existing, entry[1]

        if best_category is None and working:
            best_category, best_score = working[0][0], working[0][1]

        if best_category and best_score > 0:
            reasons.append(f'Keywords match "{best_category}"')
            if historical.category and historical.category != best_category:
                reasons.append(f'History also points at "{historical.category}"')
            return CategorySuggestion(
                category=best_category,
                kind=self.dictionary.kind_of(best_category),
                confidence=keyword_confidence(best_score),
                method=Method.KEYWORDS,
                reasons=reasons,
                is_new_category=find_existing(best_category, existing_names) is None,
            )

        if historical.category:
            reasons.append(f'Weak suggestion "{historical.category}" from a single similar transaction')
            return CategorySuggestion(
                category=historical.category,
                kind=self.dictionary.kind_of(historical.category) or historical.kind,
                confidence=WEAK_HISTORY_CONFIDENCE,
                method=Method.HISTORICAL,
                reasons=reasons,
            )

        return CategorySuggestion(
            category=None,
            kind=None,
            confidence=0,
            method=Method.NONE,
            reasons=["Could not categorize automatically"],
        )
