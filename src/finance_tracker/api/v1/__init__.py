"""API version 1 routes."""

from fastapi import APIRouter

from finance_tracker.api.v1 import categorization, transactions

router = APIRouter(prefix="/api/v1")

# Include routers
router.include_router(categorization.router)
router.include_router(transactions.router)
