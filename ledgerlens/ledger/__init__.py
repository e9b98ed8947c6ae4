"""
Ledger Package
Double-entry validation and the transaction write path.
"""

from ledgerlens.ledger.exceptions import (
    LedgerImbalanceError,
    LedgerValidationError,
    TransactionNotFoundError,
)
from ledgerlens.ledger.invariants import assert_ledger_balanced, validate_ledger_entries
from ledgerlens.ledger.schemas import (
    LedgerEntryInput,
    LedgerValidationResult,
    TransactionCreate,
    TransactionUpdate,
)

__all__ = [
    "LedgerEntryInput",
    "LedgerImbalanceError",
    "LedgerValidationError",
    "LedgerValidationResult",
    "TransactionCreate",
    "TransactionNotFoundError",
    "TransactionUpdate",
    "assert_ledger_balanced",
    "validate_ledger_entries",
]
