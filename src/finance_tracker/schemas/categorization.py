"""Request/response schemas for the categorization endpoints."""

from typing import Literal
from uuid import UUID

from pydantic import Field, field_validator

from finance_tracker.schemas.common import CamelModel

MethodName = Literal["historical", "keywords", "none"]
KindName = Literal["expense", "income", "investment"]


class CategorizeRequest(CamelModel):
    """Ask the categorizer to pick and save a category for a transaction."""

    transaction_id: UUID = Field(description="Transaction to categorize")
    description: str | None = Field(None, description="Free-text transaction description")
    user_id: UUID = Field(description="Owner of the transaction")
    existing_category_names: list[str] = Field(
        default_factory=list,
        description="The user's category names; the result is always one of these or the sentinel",
    )

    @field_validator("description", mode="before")
    @classmethod
    def _missing_description_is_empty(cls, value):
        return "" if value is None else value


class CategorizeResponse(CamelModel):
    success: bool = True
    category: str
    confidence: int = Field(ge=0, le=95)
    method: MethodName


class CategorizeErrorResponse(CamelModel):
    """Returned when categorization fails.

    ``category`` is set when a category was chosen but could not be saved.
    """

    success: bool = False
    error: str
    error_code: str
    category: str | None = None
    confidence: int | None = None
    method: MethodName | None = None
    retry_allowed: bool = False


class SuggestRequest(CamelModel):
    """Preview a category without saving it."""

    transaction_id: UUID | None = None
    description: str | None = None
    user_id: UUID
    existing_category_names: list[str] = Field(default_factory=list)


class SuggestionResponse(CamelModel):
    category: str | None
    kind: KindName | None = None
    confidence: int
    method: MethodName
    reasons: list[str] = Field(default_factory=list)
    is_new_category: bool = Field(
        False, description="True when the suggested category is not one of the user's categories"
    )


class RecategorizeAnalyzeRequest(CamelModel):
    user_id: UUID
    existing_category_names: list[str] = Field(default_factory=list)
    limit: int | None = Field(None, ge=1, le=5000, description="Maximum transactions to analyze")


class RecategorizeSuggestion(CamelModel):
    transaction_id: UUID
    description: str
    current_category: str
    suggested_category: str
    confidence: int
    kind: KindName | None = None
    auto_accept: bool = Field(description="High-confidence suggestions are pre-accepted")


class RecategorizeAnalyzeResult(CamelModel):
    analyzed: int = Field(description="Number of transactions analyzed")
    skipped: int = Field(0, description="Transactions that could not be analyzed")
    suggestions: list[RecategorizeSuggestion]
