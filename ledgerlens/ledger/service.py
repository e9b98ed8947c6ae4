"""
Transaction Service
Write path for journal transactions. Ledger entries are validated before
anything is added to the session; commit or rollback belongs to the session
owner (see session_scope).
"""

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerlens.ledger.exceptions import TransactionNotFoundError
from ledgerlens.ledger.invariants import assert_ledger_balanced
from ledgerlens.ledger.schemas import LedgerEntryInput, TransactionCreate, TransactionUpdate
from ledgerlens.models.transaction import LedgerEntry, Transaction

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def to_cents(entries: list[LedgerEntryInput]) -> list[LedgerEntryInput]:
    """Entries with amounts rounded to the cents the amount column stores."""
    return [
        entry.model_copy(update={"amount": Decimal(entry.amount).quantize(CENTS, rounding=ROUND_HALF_UP)})
        for entry in entries
    ]


def _build_entries(entries: list[LedgerEntryInput]) -> list[LedgerEntry]:
    return [
        LedgerEntry(
            position=position,
            amount=entry.amount,
            memo=entry.memo,
            debit_account_id=entry.debit_account_id,
            credit_account_id=entry.credit_account_id,
        )
        for position, entry in enumerate(entries)
    ]


class TransactionService:
    """
    Create and update transactions with balanced ledger entries.
    
    Usage:
        async with session_scope() as session:
            service = TransactionService(session)
            await service.create(organization_id, TransactionCreate(...))
    """
    
    def __init__(self, session: AsyncSession):
        """
        Initialize service.
        
        Args:
            session: Session whose transaction the writes join
        """
        self.session = session
    
    async def get(self, transaction_id: uuid.UUID, organization_id: uuid.UUID) -> Transaction:
        """
        Load a transaction scoped to its organization.
        
        Raises:
            TransactionNotFoundError: No such transaction for this organization
        """
        result = await self.session.execute(
            select(Transaction).where(
                Transaction.id == transaction_id,
                Transaction.organization_id == organization_id,
            )
        )
        transaction = result.scalar_one_or_none()
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction
    
    async def create(self, organization_id: uuid.UUID, data: TransactionCreate) -> Transaction:
        """
        Create a transaction and its ledger entries.
        
        Args:
            organization_id: Owning organization
            data: Transaction payload
            
        Returns:
            The flushed Transaction
            
        Raises:
            LedgerImbalanceError: Entries don't balance once rounded to cents (nothing is written)
        """
        # Validate exactly the cent amounts that will be stored
        entries = to_cents(data.ledger_entries)
        assert_ledger_balanced(entries)
        
        transaction = Transaction(
            organization_id=organization_id,
            date=data.date,
            description=data.description,
            reference=data.reference,
            status=data.status,
            ledger_entries=_build_entries(entries),
        )
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        
        logger.info(
            "Created transaction %s with %d ledger entries for organization %s",
            transaction.id,
            len(entries),
            organization_id,
        )
        return transaction
    
    async def update(
        self,
        transaction_id: uuid.UUID,
        organization_id: uuid.UUID,
        data: TransactionUpdate,
    ) -> Transaction:
        """
        Update a transaction; new ledger entries replace the existing ones.
        
        Args:
            transaction_id: Transaction to update
            organization_id: Owning organization
            data: Partial payload
            
        Returns:
            The flushed Transaction
            
        Raises:
            LedgerImbalanceError: Replacement entries don't balance (nothing is written)
            TransactionNotFoundError: No such transaction for this organization
        """
        entries = None
        if data.ledger_entries is not None:
            entries = to_cents(data.ledger_entries)
            assert_ledger_balanced(entries)
        
        transaction = await self.get(transaction_id, organization_id)
        
        for field, value in data.model_dump(exclude_unset=True, exclude={"ledger_entries"}).items():
            setattr(transaction, field, value)
        
        if entries is not None:
            transaction.ledger_entries = _build_entries(entries)
        
        await self.session.flush()
        await self.session.refresh(transaction)
        
        logger.info("Updated transaction %s for organization %s", transaction_id, organization_id)
        return transaction
