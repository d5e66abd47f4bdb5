"""Categorization endpoints."""

from fastapi import APIRouter, Depends

from finance_tracker.api.deps import get_categorization_service
from finance_tracker.categorization.resolver import CategorizationRequest
from finance_tracker.schemas.categorization import (
    CategorizeErrorResponse,
    CategorizeRequest,
    CategorizeResponse,
    RecategorizeAnalyzeRequest,
    RecategorizeAnalyzeResult,
    RecategorizeSuggestion,
    SuggestionResponse,
    SuggestRequest,
)
from finance_tracker.services.categorization import CategorizationService

router = APIRouter(prefix="/categorization", tags=["categorization"])


@router.post(
    "/categorize",
    response_model=CategorizeResponse,
    summary="Categorize a transaction",
    description="""
    Pick a category for a transaction from its description and save it.

    ## Resolution order
    1. The user's own history: two or more similar past transactions with the same category
    2. The keyword dictionary, mapped back onto one of `existingCategoryNames`
    3. Otherwise `uncategorized` with confidence 0 (nothing is saved)

    The returned category is always one of `existingCategoryNames` or `uncategorized`.
    """,
    responses={
        404: {"model": CategorizeErrorResponse, "description": "Transaction not found"},
        500: {"model": CategorizeErrorResponse, "description": "Category could not be saved"},
        502: {"model": CategorizeErrorResponse, "description": "History unavailable"},
    },
)
async def categorize(
    body: CategorizeRequest,
    service: CategorizationService = Depends(get_categorization_service),
) -> CategorizeResponse:
    result = await service.categorize(
        CategorizationRequest(
            transaction_id=body.transaction_id,
            description=body.description,
            user_id=body.user_id,
            existing_category_names=body.existing_category_names,
        )
    )
    return CategorizeResponse(
        category=result.category,
        confidence=result.confidence,
        method=result.method.value,
    )


@router.post(
    "/suggest",
    response_model=SuggestionResponse,
    summary="Suggest a category without saving it",
)
async def suggest(
    body: SuggestRequest,
    service: CategorizationService = Depends(get_categorization_service),
) -> SuggestionResponse:
    """
    Preview the category the categorizer would pick.

    Unlike ``/categorize`` this may propose a dictionary category the user does
    not have yet (``isNewCategory``) and never writes to the database.
    """
    suggestion = await service.suggest(
        CategorizationRequest(
            transaction_id=body.transaction_id,
            description=body.description,
            user_id=body.user_id,
            existing_category_names=body.existing_category_names,
        )
    )
    return SuggestionResponse(
        category=suggestion.category,
        kind=suggestion.kind,
        confidence=suggestion.confidence,
        method=suggestion.method.value,
        reasons=suggestion.reasons,
        is_new_category=suggestion.is_new_category,
    )


@router.post(
    "/recategorize/analyze",
    response_model=RecategorizeAnalyzeResult,
    summary="Suggest better categories for existing transactions",
)
async def analyze_recategorization(
    body: RecategorizeAnalyzeRequest,
    service: CategorizationService = Depends(get_categorization_service),
) -> RecategorizeAnalyzeResult:
    """
    Run the suggestion flow over the user's transactions.

    Only changes are returned; suggestions at or above the auto-accept
    confidence are flagged ``autoAccept``.
    """
    analysis = await service.analyze_recategorization(
        body.user_id, body.existing_category_names, body.limit
    )
    return RecategorizeAnalyzeResult(
        analyzed=analysis.analyzed,
        skipped=analysis.skipped,
        suggestions=[
            RecategorizeSuggestion(
                transaction_id=s.transaction_id,
                description=s.description,
                current_category=s.current_category,
                suggested_category=s.suggested_category,
                confidence=s.confidence,
                kind=s.kind,
                auto_accept=s.auto_accept,
            )
            for s in analysis.suggestions
        ],
    )
