"""Transaction model: one income, expense or investment entry."""
from datetime import date
from uuid import UUID

from sqlalchemy import BigInteger, Date, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from finance_tracker.models.base import BaseModel


class Transaction(BaseModel):
    """A user-entered (or email-ingested) transaction.

    ``category`` holds the user-facing label. New transactions start as the
    uncategorized sentinel until the categorizer or the user changes it.
    """

    __tablename__ = "transactions"

    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False, default="expense")
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    txn_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    __table_args__ = (
        Index("ix_transactions_user_id_category", "user_id", "category"),
    )

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, category={self.category}, amount={self.amount})>"
