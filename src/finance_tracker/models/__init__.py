"""Database models."""
from finance_tracker.models.transaction import Transaction

__all__ = ["Transaction"]
