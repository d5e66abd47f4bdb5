"""FastAPI dependency injection for services and database."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.db.session import get_db
from finance_tracker.services.categorization import CategorizationService


async def get_categorization_service(
    db: AsyncSession = Depends(get_db),
) -> CategorizationService:
    """
    Get categorization service instance.

    Args:
        db: Database session

    Returns:
        CategorizationService bound to the request's session
    """
    return CategorizationService(db)
