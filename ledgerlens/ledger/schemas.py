"""
Ledger Schemas
Pydantic payloads for the transaction write path.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LedgerEntryInput(BaseModel):
    """
    One ledger line.
    
    The amount counts as a debit when debit_account_id is set and as a credit
    when credit_account_id is set; a line with both counts on both sides.
    """
    
    model_config = ConfigDict(frozen=True)
    
    amount: Decimal = Field(..., description="Line amount")
    memo: Optional[str] = Field(None, description="Line memo")
    debit_account_id: Optional[str] = Field(None, description="Account debited")
    credit_account_id: Optional[str] = Field(None, description="Account credited")


class TransactionCreate(BaseModel):
    date: dt.date
    description: Optional[str] = None
    reference: Optional[str] = Field(None, max_length=100)
    status: str = Field("pending", max_length=20)
    ledger_entries: list[LedgerEntryInput] = Field(default_factory=list)


class TransactionUpdate(BaseModel):
    """Partial update; ledger_entries, when given, replace the existing lines."""
    
    date: Optional[dt.date] = None
    description: Optional[str] = None
    reference: Optional[str] = Field(None, max_length=100)
    status: Optional[str] = Field(None, max_length=20)
    ledger_entries: Optional[list[LedgerEntryInput]] = None


class LedgerValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    accepted: bool
    debit_total: Decimal
    credit_total: Decimal
    difference: Decimal = Field(..., description="debit_total - credit_total")
    reason: Optional[str] = None
