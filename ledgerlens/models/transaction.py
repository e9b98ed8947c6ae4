"""
Transaction Models
Journal transactions and their double-entry ledger lines.
"""

import uuid
from datetime import date as date_type
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerlens.database.base import Base, TimestampMixin, UUIDMixin


class Transaction(Base, UUIDMixin, TimestampMixin):
    """
    A journal transaction owned by an organization.
    
    Attributes:
        id: Unique identifier (UUID)
        organization_id: Owning organization (tenant)
        date: Transaction date
        description: Free-text description
        reference: External reference (invoice number, cheque number, ...)
        status: Lifecycle status (pending, posted, voided)
        ledger_entries: Ledger lines; debits must equal credits
    
    Note:
        Rows are only written after the ledger entries pass
        validate_ledger_entries, see TransactionService.
    """
    
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
    )
    
    date: Mapped[date_type] = mapped_column(
        Date,
        nullable=False,
    )
    
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    
    reference: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
    )
    
    ledger_entries: Mapped[list["LedgerEntry"]] = relationship(
        "LedgerEntry",
        back_populates="transaction",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="LedgerEntry.position",
    )
    
    __table_args__ = (
        Index("ix_transactions_organization_id", "organization_id"),
    )


class LedgerEntry(Base, UUIDMixin, TimestampMixin):
    """
    One ledger line of a transaction.
    
    An entry carries a debit account, a credit account, or both; with both
    it counts once on each side of the balance check.
    """
    
    transaction_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
    )
    
    position: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
    )
    
    amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
    )
    
    memo: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    
    debit_account_id: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    
    credit_account_id: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    
    transaction: Mapped["Transaction"] = relationship(
        "Transaction",
        back_populates="ledger_entries",
    )
    
    __table_args__ = (
        Index("ix_ledger_entries_transaction_id", "transaction_id"),
    )
