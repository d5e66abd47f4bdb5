"""Transaction request/response schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import ConfigDict, Field

from finance_tracker.schemas.categorization import CategorizeResponse, KindName
from finance_tracker.schemas.common import CamelModel, PaginationMeta


class TransactionCreateRequest(CamelModel):
    user_id: UUID
    description: str | None = Field(None, description="Free-text description")
    category: str | None = Field(None, description="Category; defaults to the uncategorized sentinel")
    kind: KindName = "expense"
    amount: int = Field(description="Amount in minor units")
    txn_date: date
    auto_categorize: bool = Field(
        False, description="Run the categorizer right after the transaction is saved"
    )
    existing_category_names: list[str] = Field(default_factory=list)


class TransactionResponse(CamelModel):
    id: UUID
    user_id: UUID
    description: str | None
    category: str
    kind: KindName
    amount: int
    txn_date: date
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionCreateResult(CamelModel):
    transaction: TransactionResponse
    categorization: CategorizeResponse | None = None


class TransactionListResult(CamelModel):
    transactions: list[TransactionResponse]
    pagination: PaginationMeta


class BulkCategoryRequest(CamelModel):
    user_id: UUID
    transaction_ids: list[UUID] = Field(min_length=1)
    category: str = Field(min_length=1, max_length=100)


class BulkCategoryResult(CamelModel):
    category: str
    updated_count: int
