"""Categorization service.

Connects the category resolver to the database and adds the flows built on
top of it: auto-categorizing new transactions, previewing suggestions,
analyzing a user's whole history for re-categorization, and bulk updates.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.categorization.history import HistoricalSample
from finance_tracker.categorization.keywords import KeywordDictionary, load_dictionary
from finance_tracker.categorization.resolver import (
    CategorizationRequest,
    CategorizationResult,
    CategoryResolver,
    CategorySuggestion,
)
from finance_tracker.config import settings
from finance_tracker.core.exceptions import CategorizationError
from finance_tracker.models.transaction import Transaction
from finance_tracker.repositories.transaction import TransactionRepository

logger = logging.getLogger(__name__)


@dataclass
class RecategorizationSuggestion:
    transaction_id: UUID
    description: str
    current_category: str
    suggested_category: str
    confidence: int
    kind: str | None
    auto_accept: bool


@dataclass
class RecategorizationAnalysis:
    analyzed: int
    skipped: int
    suggestions: list[RecategorizationSuggestion]


class _SnapshotHistory:
    """History source serving a fixed, pre-fetched list of samples."""

    def __init__(self, samples: list[HistoricalSample]):
        self.samples = samples

    async def fetch_samples(self, user_id, limit: int) -> list[HistoricalSample]:
        return self.samples[:limit]


class CategorizationService:
    """Service for categorizing transactions.

    Args:
        db: Database session
        dictionary: Keyword dictionary; defaults to the configured one
    """

    def __init__(self, db: AsyncSession, dictionary: KeywordDictionary | None = None):
        self.db = db
        self.transaction_repo = TransactionRepository(db, settings.uncategorized_label)
        self.dictionary = dictionary or load_dictionary(settings.keyword_dictionary_path)
        self.resolver = self._resolver(self.transaction_repo)

    def _resolver(self, history) -> CategoryResolver:
        return CategoryResolver(
            dictionary=self.dictionary,
            history=history,
            writer=self.transaction_repo,
            sample_limit=settings.history_sample_limit,
            uncategorized_label=settings.uncategorized_label,
        )

    async def categorize(self, request: CategorizationRequest) -> CategorizationResult:
        """Categorize a transaction and save the chosen category.

        Raises:
            HistoryUnavailableError: If history could not be fetched
            CategoryCommitError: If the category could not be saved
        """
        logger.info(
            "Auto-categorizing transaction",
            extra={"transaction_id": str(request.transaction_id), "user_id": str(request.user_id)},
        )
        try:
            result = await self.resolver.categorize(request)
        except CategorizationError as e:
            logger.error(
                "Categorization failed",
                extra={
                    "transaction_id": str(request.transaction_id),
                    "error_code": e.error_code,
                    "details": e.details,
                },
            )
            await self.db.rollback()
            raise

        logger.info(
            "Categorized transaction",
            extra={
                "transaction_id": str(request.transaction_id),
                "category": result.category,
                "confidence": result.confidence,
                "categorization_method": result.method.value,
            },
        )
        return result

    async def suggest(self, request: CategorizationRequest) -> CategorySuggestion:
        return await self.resolver.suggest(request)

    async def create_transaction(
        self,
        transaction: Transaction,
        auto_categorize: bool = False,
        existing_category_names: list[str] | None = None,
    ) -> tuple[Transaction, CategorizationResult | None]:
        """Save a transaction and optionally categorize it right away.

        A categorization failure does not undo the insert; the transaction keeps
        its initial category and the failure is logged.
        """
        if not transaction.category:
            transaction.category = settings.uncategorized_label
        created = await self.transaction_repo.create(transaction)

        if not auto_categorize or not (created.description or "").strip():
            return created, None

        transaction_id = created.id
        try:
            result = await self.categorize(
                CategorizationRequest(
                    transaction_id=transaction_id,
                    description=created.description,
                    user_id=created.user_id,
                    existing_category_names=existing_category_names or [],
                )
            )
        except CategorizationError as e:
            logger.warning(
                "Transaction saved without automatic category",
                extra={"transaction_id": str(transaction_id), "error_code": e.error_code},
            )
            result = None

        # Reload: a failed categorization rolls the session back and expires it.
        refreshed = await self.transaction_repo.get_by_id(transaction_id)
        return refreshed or created, result

    async def analyze_recategorization(
        self,
        user_id: UUID,
        existing_category_names: list[str],
        limit: int | None = None,
    ) -> RecategorizationAnalysis:
        """Suggest better categories for the user's existing transactions.

        Only suggestions that change the category and keep the transaction's
        kind (expense, income, investment) are returned.
        """
        limit = limit or settings.recategorize_max_transactions
        try:
            transactions = await self.transaction_repo.get_with_description(user_id, limit)
            samples = await self.transaction_repo.fetch_samples(user_id, settings.history_sample_limit)
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        resolver = self._resolver(_SnapshotHistory(samples))
        suggestions: list[RecategorizationSuggestion] = []
        skipped = 0

        for txn in transactions:
            try:
                suggestion = await resolver.suggest(
                    CategorizationRequest(
                        transaction_id=txn.id,
                        description=txn.description,
                        user_id=user_id,
                        existing_category_names=existing_category_names,
                    )
                )
            except CategorizationError as e:
                skipped += 1
                logger.warning(
                    "Skipping transaction during re-categorization analysis",
                    extra={"transaction_id": str(txn.id), "error_code": e.error_code},
                )
                continue

            category = (suggestion.category or "").strip()
            if not category:
                continue
            if suggestion.kind != txn.kind:
                continue
            if category.lower() == (txn.category or "").lower():
                continue

            suggestions.append(
                RecategorizationSuggestion(
                    transaction_id=txn.id,
                    description=txn.description or "",
                    current_category=txn.category,
                    suggested_category=category,
                    confidence=suggestion.confidence,
                    kind=suggestion.kind,
                    auto_accept=suggestion.confidence >= settings.auto_accept_confidence,
                )
            )

        logger.info(
            "Re-categorization analysis complete",
            extra={
                "user_id": str(user_id),
                "analyzed": len(transactions),
                "suggestions_count": len(suggestions),
            },
        )
        return RecategorizationAnalysis(
            analyzed=len(transactions), skipped=skipped, suggestions=suggestions
        )

    async def bulk_recategorize(self, user_id: UUID, transaction_ids: list[UUID], category: str) -> int:
        """Move many transactions to one category. Returns the number updated."""
        category = category.strip()
        try:
            updated = await self.transaction_repo.bulk_set_category(user_id, transaction_ids, category)
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        logger.info(
            "Bulk re-categorization",
            extra={"user_id": str(user_id), "category": category, "updated_count": updated},
        )
        return updated

    async def list_transactions(
        self, user_id: UUID, category: str | None, page: int, limit: int
    ) -> tuple[list[Transaction], int]:
        return await self.transaction_repo.get_by_user(
            user_id, category=category, skip=(page - 1) * limit, limit=limit
        )
