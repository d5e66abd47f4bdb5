import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from finance_tracker.api.middleware.error_handler import (
    handle_categorization_error,
    handle_database_error,
    handle_generic_error,
    handle_integrity_error,
    handle_validation_error,
)
from finance_tracker.api.middleware.logging import RequestLoggingMiddleware, configure_logging
from finance_tracker.api.v1 import router as v1_router
from finance_tracker.api.v1.health import router as health_router
from finance_tracker.categorization.keywords import load_dictionary
from finance_tracker.config import settings
from finance_tracker.core.exceptions import CategorizationError
from finance_tracker.db.session import async_engine
from finance_tracker.models.base import BaseModel

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if settings.auto_create_tables:
        async with async_engine.begin() as conn:
            await conn.run_sync(BaseModel.metadata.create_all)
    # Fail fast on a broken dictionary file.
    dictionary = load_dictionary(settings.keyword_dictionary_path)
    logger.info(
        "Categorizer ready",
        extra={"categories_count": len(dictionary.categories)},
    )
    yield
    # Shutdown
    await async_engine.dispose()


def create_app() -> FastAPI:
    configure_logging(settings.log_level, settings.log_json)

    app = FastAPI(
        title="Finance Tracker Categorization API",
        description="Automatic transaction categorization from history and keywords",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers (order matters - most specific first)
    app.add_exception_handler(CategorizationError, handle_categorization_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
    app.add_exception_handler(Exception, handle_generic_error)

    # Register routers
    app.include_router(health_router)
    app.include_router(v1_router)

    return app


app = create_app()
