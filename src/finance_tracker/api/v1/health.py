from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.categorization.keywords import load_dictionary
from finance_tracker.config import settings
from finance_tracker.core.exceptions import DictionaryLoadError
from finance_tracker.db.session import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Basic health check."""
    return {"status": "ok"}


@router.get("/health/ready")
async def health_ready(db: AsyncSession = Depends(get_db)):
    """Readiness check: database connection and keyword dictionary."""
    try:
        dictionary = load_dictionary(settings.keyword_dictionary_path)
    except DictionaryLoadError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not ready", "dictionary": "unavailable", "errorCode": e.error_code},
        )

    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not ready", "database": "disconnected", "error": type(e).__name__},
        )
    return {"status": "ready", "database": "connected", "categories": len(dictionary.categories)}
