"""
Ledger Exceptions
Raised on the transaction write path before anything is persisted.
"""

from decimal import Decimal
from typing import Optional


class LedgerValidationError(Exception):
    """Ledger entries were rejected."""
    
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class LedgerImbalanceError(LedgerValidationError):
    """Total debits differ from total credits by 0.01 or more."""
    
    def __init__(
        self,
        debit_total: Decimal,
        credit_total: Decimal,
        message: str = "Transaction does not balance. Total debits must equal total credits.",
    ):
        self.debit_total = debit_total
        self.credit_total = credit_total
        self.difference = debit_total - credit_total
        super().__init__(message)


class TransactionNotFoundError(Exception):
    """No transaction with this id exists for the organization."""
    
    def __init__(self, transaction_id: Optional[object] = None):
        self.transaction_id = transaction_id
        self.message = f"Transaction {transaction_id} not found"
        super().__init__(self.message)
