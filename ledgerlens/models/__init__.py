"""
Models Package
SQLAlchemy ORM models for the ledger write path.
"""

from ledgerlens.models.transaction import LedgerEntry, Transaction

__all__ = [
    "Transaction",
    "LedgerEntry",
]
