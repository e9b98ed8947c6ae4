"""
Transaction write path tests (in-memory SQLite).

Covers:
1. Creating a balanced transaction persists it with ordered ledger entries
2. Unbalanced entries are rejected before anything is written
3. Updates: field changes, entry replacement, rejected replacements leave data untouched
4. Organization scoping and not-found handling
5. Commit and rollback through session_scope; model serialization
"""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from ledgerlens.database import session_scope
from ledgerlens.database.base import table_name_for
from ledgerlens.ledger import (
    LedgerEntryInput,
    LedgerImbalanceError,
    TransactionCreate,
    TransactionNotFoundError,
    TransactionUpdate,
)
from ledgerlens.ledger.invariants import validate_ledger_entries
from ledgerlens.ledger.service import TransactionService
from ledgerlens.models import LedgerEntry, Transaction


def _entries(debit, credit):
    return [
        LedgerEntryInput(amount=Decimal(debit), debit_account_id="1000", memo="cash"),
        LedgerEntryInput(amount=Decimal(credit), credit_account_id="4000", memo="sales"),
    ]


async def _count(session, model):
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


class TestCreate:
    async def test_balanced_transaction_is_persisted(self, db_session, organization_id):
        service = TransactionService(db_session)

        transaction = await service.create(
            organization_id,
            TransactionCreate(
                date=date(2024, 6, 1),
                description="Invoice 1001",
                reference="INV-1001",
                ledger_entries=_entries("250.00", "250.00"),
            ),
        )

        assert transaction.id is not None
        assert transaction.organization_id == organization_id
        assert transaction.status == "pending"
        assert [e.position for e in transaction.ledger_entries] == [0, 1]
        assert [e.amount for e in transaction.ledger_entries] == [Decimal("250"), Decimal("250")]
        assert transaction.ledger_entries[0].debit_account_id == "1000"
        assert transaction.ledger_entries[1].credit_account_id == "4000"
        assert await _count(db_session, LedgerEntry) == 2

    async def test_amounts_are_stored_in_cents(self, db_session, organization_id):
        transaction = await TransactionService(db_session).create(
            organization_id,
            TransactionCreate(date=date(2024, 6, 1), ledger_entries=_entries("10.005", "10.005")),
        )
        assert transaction.ledger_entries[0].amount == Decimal("10.01")

    async def test_sub_cent_entries_are_checked_after_rounding(self, db_session, organization_id):
        # 0.005 x 3 vs 0.01 balances to the tenth of a cent but stores as 0.03 vs 0.01
        entries = [
            LedgerEntryInput(amount=Decimal("0.005"), debit_account_id="1000"),
            LedgerEntryInput(amount=Decimal("0.005"), debit_account_id="1001"),
            LedgerEntryInput(amount=Decimal("0.005"), debit_account_id="1002"),
            LedgerEntryInput(amount=Decimal("0.01"), credit_account_id="4000"),
        ]

        with pytest.raises(LedgerImbalanceError) as exc_info:
            await TransactionService(db_session).create(
                organization_id, TransactionCreate(date=date(2024, 6, 1), ledger_entries=entries)
            )

        assert exc_info.value.debit_total == Decimal("0.03")
        assert exc_info.value.credit_total == Decimal("0.01")
        assert await _count(db_session, Transaction) == 0
        assert await _count(db_session, LedgerEntry) == 0

    async def test_rounded_entries_are_stored_balanced(self, db_session, organization_id):
        entries = [
            LedgerEntryInput(amount=Decimal("10.004"), debit_account_id="1000"),
            LedgerEntryInput(amount=Decimal("9.996"), debit_account_id="1001"),
            LedgerEntryInput(amount=Decimal("20.00"), credit_account_id="4000"),
        ]

        transaction = await TransactionService(db_session).create(
            organization_id, TransactionCreate(date=date(2024, 6, 1), ledger_entries=entries)
        )

        stored = [
            {"amount": e.amount, "debit_account_id": e.debit_account_id, "credit_account_id": e.credit_account_id}
            for e in transaction.ledger_entries
        ]
        assert [e.amount for e in transaction.ledger_entries] == [Decimal("10.00"), Decimal("10.00"), Decimal("20.00")]
        assert validate_ledger_entries(stored).accepted

    async def test_unbalanced_transaction_writes_nothing(self, db_session, organization_id):
        service = TransactionService(db_session)

        with pytest.raises(LedgerImbalanceError):
            await service.create(
                organization_id,
                TransactionCreate(date=date(2024, 6, 1), ledger_entries=_entries("100", "99")),
            )

        assert await _count(db_session, Transaction) == 0
        assert await _count(db_session, LedgerEntry) == 0


class TestUpdate:
    async def _create(self, session, organization_id):
        return await TransactionService(session).create(
            organization_id,
            TransactionCreate(
                date=date(2024, 6, 1),
                description="Original",
                ledger_entries=_entries("100", "100"),
            ),
        )

    async def test_fields_update_and_entries_kept(self, db_session, organization_id):
        created = await self._create(db_session, organization_id)

        updated = await TransactionService(db_session).update(
            created.id,
            organization_id,
            TransactionUpdate(description="Edited", status="posted"),
        )

        assert updated.description == "Edited"
        assert updated.status == "posted"
        assert updated.date == date(2024, 6, 1)
        assert len(updated.ledger_entries) == 2

    async def test_entries_are_replaced(self, db_session, organization_id):
        created = await self._create(db_session, organization_id)
        replacement = [
            LedgerEntryInput(amount=Decimal("60"), debit_account_id="1000"),
            LedgerEntryInput(amount=Decimal("40"), debit_account_id="1100"),
            LedgerEntryInput(amount=Decimal("100"), credit_account_id="4000"),
        ]

        updated = await TransactionService(db_session).update(
            created.id, organization_id, TransactionUpdate(ledger_entries=replacement)
        )

        assert [e.amount for e in updated.ledger_entries] == [Decimal("60"), Decimal("40"), Decimal("100")]
        assert await _count(db_session, LedgerEntry) == 3

    async def test_unbalanced_replacement_leaves_transaction_untouched(self, db_session, organization_id):
        created = await self._create(db_session, organization_id)
        service = TransactionService(db_session)

        with pytest.raises(LedgerImbalanceError):
            await service.update(
                created.id,
                organization_id,
                TransactionUpdate(description="Never saved", ledger_entries=_entries("100", "98")),
            )

        reloaded = await service.get(created.id, organization_id)
        assert reloaded.description == "Original"
        assert [e.amount for e in reloaded.ledger_entries] == [Decimal("100"), Decimal("100")]

    async def test_sub_cent_replacement_rejected(self, db_session, organization_id):
        created = await self._create(db_session, organization_id)
        replacement = [
            LedgerEntryInput(amount=Decimal("0.005"), debit_account_id="1000"),
            LedgerEntryInput(amount=Decimal("0.005"), debit_account_id="1001"),
            LedgerEntryInput(amount=Decimal("0.005"), debit_account_id="1002"),
            LedgerEntryInput(amount=Decimal("0.01"), credit_account_id="4000"),
        ]

        with pytest.raises(LedgerImbalanceError):
            await TransactionService(db_session).update(
                created.id, organization_id, TransactionUpdate(ledger_entries=replacement)
            )

        assert await _count(db_session, LedgerEntry) == 2

    async def test_missing_transaction(self, db_session, organization_id):
        with pytest.raises(TransactionNotFoundError):
            await TransactionService(db_session).update(
                uuid.uuid4(), organization_id, TransactionUpdate(description="x")
            )


class TestGet:
    async def test_scoped_to_organization(self, db_session, organization_id):
        service = TransactionService(db_session)
        created = await service.create(
            organization_id,
            TransactionCreate(date=date(2024, 6, 1), ledger_entries=_entries("5", "5")),
        )

        assert (await service.get(created.id, organization_id)).id == created.id
        with pytest.raises(TransactionNotFoundError) as exc_info:
            await service.get(created.id, uuid.uuid4())
        assert exc_info.value.transaction_id == created.id


class TestSessionScope:
    async def test_commits_on_success(self, session_factory, organization_id):
        async with session_scope(session_factory) as session:
            created = await TransactionService(session).create(
                organization_id,
                TransactionCreate(date=date(2024, 6, 1), ledger_entries=_entries("20", "20")),
            )

        async with session_factory() as session:
            reloaded = await TransactionService(session).get(created.id, organization_id)
            assert len(reloaded.ledger_entries) == 2

    async def test_rolls_back_on_rejection(self, session_factory, organization_id):
        with pytest.raises(LedgerImbalanceError):
            async with session_scope(session_factory) as session:
                service = TransactionService(session)
                await service.create(
                    organization_id,
                    TransactionCreate(date=date(2024, 6, 1), ledger_entries=_entries("20", "20")),
                )
                await service.create(
                    organization_id,
                    TransactionCreate(date=date(2024, 6, 2), ledger_entries=_entries("20", "19.99")),
                )

        async with session_factory() as session:
            assert await _count(session, Transaction) == 0
            assert await _count(session, LedgerEntry) == 0


class TestModelHelpers:
    def test_table_names(self):
        assert table_name_for("Transaction") == "transactions"
        assert table_name_for("LedgerEntry") == "ledger_entries"
        assert Transaction.__tablename__ == "transactions"
        assert LedgerEntry.__tablename__ == "ledger_entries"

    async def test_to_dict_keeps_money_exact(self, db_session, organization_id):
        transaction = await TransactionService(db_session).create(
            organization_id,
            TransactionCreate(date=date(2024, 6, 1), reference="INV-7", ledger_entries=_entries("19.99", "19.99")),
        )

        data = transaction.ledger_entries[0].to_dict()

        assert data["amount"] == "19.99"
        assert data["transaction_id"] == str(transaction.id)
        assert transaction.to_dict()["date"] == "2024-06-01"
        assert "reference='INV-7'" in repr(transaction)
