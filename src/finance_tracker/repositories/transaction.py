"""Transaction repository, including the categorizer's history and writer ports."""
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.categorization.history import HistoricalSample
from finance_tracker.categorization.resolver import UNCATEGORIZED
from finance_tracker.core.exceptions import TransactionNotFoundError
from finance_tracker.models.transaction import Transaction
from finance_tracker.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction model with user-scoped queries.

    Implements ``HistorySource`` and ``CategoryWriter`` so the category
    resolver can run against the database.
    """

    def __init__(self, db: AsyncSession, uncategorized_label: str = UNCATEGORIZED):
        super().__init__(db, Transaction)
        self.uncategorized_label = uncategorized_label

    async def fetch_samples(self, user_id: UUID, limit: int) -> list[HistoricalSample]:
        """Most recent categorized transactions that have a description."""
        result = await self.db.execute(
            select(Transaction.category, Transaction.description, Transaction.kind)
            .where(
                Transaction.user_id == user_id,
                Transaction.category != self.uncategorized_label,
                Transaction.description.is_not(None),
            )
            .order_by(Transaction.created_at.desc())
            .limit(limit)
        )
        return [
            HistoricalSample(category=row.category, description=row.description, kind=row.kind)
            for row in result
        ]

    async def get_for_user(self, transaction_id: UUID, user_id: UUID) -> Transaction | None:
        """Get a transaction only if it belongs to the user."""
        result = await self.db.execute(
            select(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def set_category(self, transaction_id: UUID, user_id: UUID, category: str) -> None:
        """Save a category on one of the user's transactions.

        Raises:
            TransactionNotFoundError: If the transaction does not exist or
                belongs to another user
        """
        txn = await self.get_for_user(transaction_id, user_id)
        if txn is None:
            raise TransactionNotFoundError(details={"transaction_id": str(transaction_id)})

        txn.category = category
        await self.db.commit()
        await self.db.refresh(txn)

    async def get_by_user(
        self,
        user_id: UUID,
        category: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Transaction], int]:
        """Get a page of the user's transactions (newest first) and the total count."""
        query = select(Transaction).where(Transaction.user_id == user_id)
        if category:
            query = query.where(Transaction.category == category)

        total = (
            await self.db.execute(select(func.count()).select_from(query.subquery()))
        ).scalar() or 0

        result = await self.db.execute(
            query.order_by(Transaction.txn_date.desc(), Transaction.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def get_with_description(self, user_id: UUID, limit: int) -> list[Transaction]:
        """Transactions that have a description, newest first."""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id, Transaction.description.is_not(None))
            .order_by(Transaction.txn_date.desc(), Transaction.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def bulk_set_category(
        self, user_id: UUID, transaction_ids: list[UUID], category: str
    ) -> int:
        """Set one category on many of the user's transactions.

        Returns the number of rows updated. Ids owned by other users are ignored.
        """
        if not transaction_ids:
            return 0
        result = await self.db.execute(
            update(Transaction)
            .where(Transaction.user_id == user_id, Transaction.id.in_(transaction_ids))
            .values(category=category)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        self.db.expire_all()
        return int(result.rowcount or 0)
