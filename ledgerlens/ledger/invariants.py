"""
Ledger Invariants
Double-entry balance checks run before any ledger write.

Totals are summed as Decimal so that many cent amounts never drift.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Union

from pydantic import ValidationError

from ledgerlens.ledger.exceptions import LedgerImbalanceError, LedgerValidationError
from ledgerlens.ledger.schemas import LedgerEntryInput, LedgerValidationResult

logger = logging.getLogger(__name__)

BALANCE_TOLERANCE = Decimal("0.01")
IMBALANCE_REASON = "Transaction does not balance. Total debits must equal total credits."

LedgerEntryLike = Union[LedgerEntryInput, Mapping[str, Any]]


def _to_entry(entry: LedgerEntryLike) -> LedgerEntryInput:
    if isinstance(entry, LedgerEntryInput):
        return entry
    if isinstance(entry, Mapping):
        try:
            return LedgerEntryInput(
                amount=entry.get("amount", 0),
                memo=entry.get("memo"),
                debit_account_id=entry.get("debit_account_id", entry.get("debitAccountId")),
                credit_account_id=entry.get("credit_account_id", entry.get("creditAccountId")),
            )
        except ValidationError as e:
            raise LedgerValidationError(f"Invalid ledger entry: {entry!r}") from e
    raise LedgerValidationError(f"Unsupported ledger entry: {entry!r}")


def _to_decimal(amount: Any) -> Decimal:
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError) as e:
        raise LedgerValidationError(f"Invalid ledger amount: {amount!r}") from e
    if not value.is_finite():
        raise LedgerValidationError(f"Invalid ledger amount: {amount!r}")
    return value


def validate_ledger_entries(entries: Iterable[LedgerEntryLike]) -> LedgerValidationResult:
    """
    Check that total debits equal total credits.
    
    An entry adds its amount to the debit total when it names a debit account
    and to the credit total when it names a credit account (both, if both).
    
    Args:
        entries: LedgerEntryInput objects or equivalent dicts
        
    Returns:
        LedgerValidationResult; accepted iff |debits - credits| < 0.01
        
    Raises:
        LedgerValidationError: An entry or amount could not be read
    """
    debit_total = Decimal("0")
    credit_total = Decimal("0")
    
    for raw_entry in entries:
        entry = _to_entry(raw_entry)
        amount = _to_decimal(entry.amount)
        if entry.debit_account_id:
            debit_total += amount
        if entry.credit_account_id:
            credit_total += amount
    
    difference = debit_total - credit_total
    accepted = abs(difference) < BALANCE_TOLERANCE
    
    return LedgerValidationResult(
        accepted=accepted,
        debit_total=debit_total,
        credit_total=credit_total,
        difference=difference,
        reason=None if accepted else IMBALANCE_REASON,
    )


def assert_ledger_balanced(entries: Iterable[LedgerEntryLike]) -> LedgerValidationResult:
    """
    Validate ledger entries, raising when they do not balance.
    
    Raises:
        LedgerImbalanceError: Debits and credits differ by 0.01 or more
        LedgerValidationError: An entry or amount could not be read
    """
    result = validate_ledger_entries(entries)
    if not result.accepted:
        logger.warning(
            "Rejected unbalanced ledger entries: debits=%s, credits=%s, difference=%s",
            result.debit_total,
            result.credit_total,
            result.difference,
        )
        raise LedgerImbalanceError(result.debit_total, result.credit_total, IMBALANCE_REASON)
    return result
