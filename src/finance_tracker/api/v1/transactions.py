"""Transaction endpoints."""

import math
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from finance_tracker.api.deps import get_categorization_service
from finance_tracker.models.transaction import Transaction
from finance_tracker.schemas.categorization import CategorizeResponse
from finance_tracker.schemas.common import PaginationMeta
from finance_tracker.schemas.transaction import (
    BulkCategoryRequest,
    BulkCategoryResult,
    TransactionCreateRequest,
    TransactionCreateResult,
    TransactionListResult,
    TransactionResponse,
)
from finance_tracker.services.categorization import CategorizationService

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.post(
    "",
    response_model=TransactionCreateResult,
    status_code=status.HTTP_201_CREATED,
    summary="Create a transaction",
    description="""
    Save a transaction. With `autoCategorize` set and a non-empty description,
    the categorizer runs right after the insert.

    A categorization failure does not fail the request: the transaction is
    returned with its initial category and `categorization` is null.
    """,
)
async def create_transaction(
    body: TransactionCreateRequest,
    service: CategorizationService = Depends(get_categorization_service),
) -> TransactionCreateResult:
    transaction = Transaction(
        user_id=body.user_id,
        description=body.description,
        category=(body.category or "").strip() or None,
        kind=body.kind,
        amount=body.amount,
        txn_date=body.txn_date,
    )
    created, result = await service.create_transaction(
        transaction,
        auto_categorize=body.auto_categorize,
        existing_category_names=body.existing_category_names,
    )

    categorization = None
    if result is not None:
        categorization = CategorizeResponse(
            category=result.category,
            confidence=result.confidence,
            method=result.method.value,
        )
    return TransactionCreateResult(
        transaction=TransactionResponse.model_validate(created),
        categorization=categorization,
    )


@router.get(
    "",
    response_model=TransactionListResult,
    summary="List a user's transactions",
)
async def list_transactions(
    user_id: Annotated[UUID, Query(description="Owner of the transactions")],
    category: Annotated[str | None, Query(description="Filter by category")] = None,
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Items per page (1-100)")] = 20,
    service: CategorizationService = Depends(get_categorization_service),
) -> TransactionListResult:
    """
    List transactions, newest first.

    Args:
        user_id: Owner of the transactions
        category: Optional category filter
        page: Page number (1-indexed)
        limit: Items per page
        service: Categorization service

    Returns:
        Paginated list of transactions
    """
    transactions, total = await service.list_transactions(user_id, category, page, limit)
    return TransactionListResult(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        pagination=PaginationMeta(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if total > 0 else 0,
        ),
    )


@router.patch(
    "/category",
    response_model=BulkCategoryResult,
    summary="Move many transactions to one category",
)
async def bulk_update_category(
    body: BulkCategoryRequest,
    service: CategorizationService = Depends(get_categorization_service),
) -> BulkCategoryResult:
    """Apply accepted re-categorization suggestions in one update."""
    updated = await service.bulk_recategorize(body.user_id, body.transaction_ids, body.category)
    return BulkCategoryResult(category=body.category.strip(), updated_count=updated)
