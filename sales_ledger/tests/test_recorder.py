"""
Transaction Recorder tests.

Writes go through a real (in-memory) database session.
"""

from datetime import timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from sales_ledger.app.core.exceptions import ConflictError, PersistenceError, ValidationError
from sales_ledger.app.domain.ledger.account_status import AccountStatusService
from sales_ledger.app.domain.ledger.recorder import TransactionRecorder, new_record_id
from sales_ledger.app.models.current_account_transaction import CurrentAccountTransaction
from sales_ledger.app.models.enums import LedgerEntryType, CurrentAccountTransactionType
from sales_ledger.app.models.ledger_entry import LedgerEntry

OWNER = "customer-sub-0001"


async def count_rows(db_session, model):
    result = await db_session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


def test_record_ids_are_ulids():
    first, second = new_record_id(), new_record_id()
    assert len(first) == 26
    assert first != second


@pytest.mark.asyncio
async def test_record_stamps_id_and_timestamps(db_session):
    recorder = TransactionRecorder(db_session)
    entry = await recorder.record(LedgerEntry, OWNER, LedgerEntryType.INVOICE, Decimal("125.50"))

    assert len(entry.id) == 26
    assert entry.created_at == entry.updated_at
    assert entry.created_at.tzinfo == timezone.utc
    assert entry.created_by_admin is None

    stored = await db_session.get(LedgerEntry, entry.id)
    assert stored.owner == OWNER
    assert stored.amount == Decimal("125.50")
    assert stored.type == LedgerEntryType.INVOICE


@pytest.mark.asyncio
async def test_two_writes_get_distinct_ids(db_session):
    recorder = TransactionRecorder(db_session)
    first = await recorder.record(LedgerEntry, OWNER, "INVOICE", 10)
    second = await recorder.record(LedgerEntry, OWNER, "INVOICE", 10)

    assert first.id != second.id
    assert await count_rows(db_session, LedgerEntry) == 2


@pytest.mark.asyncio
async def test_acting_identity_other_than_owner_is_stamped(db_session):
    recorder = TransactionRecorder(db_session)
    by_admin = await recorder.record(
        CurrentAccountTransaction, OWNER, CurrentAccountTransactionType.CASH_RECEIPT, 50,
        acting_identity="admin-sub-0001"
    )
    by_owner = await recorder.record(
        CurrentAccountTransaction, OWNER, CurrentAccountTransactionType.PAYMENT_REQUEST, 50,
        acting_identity=OWNER
    )

    assert by_admin.created_by_admin == "admin-sub-0001"
    assert by_owner.created_by_admin is None


@pytest.mark.asyncio
async def test_id_collision_is_rejected_without_overwrite(db_session):
    recorder = TransactionRecorder(db_session, id_factory=lambda: "01HZX3J5T7Y9B1C3D5F7G9H1JK")
    await recorder.record(LedgerEntry, OWNER, LedgerEntryType.INVOICE, Decimal("10.00"))

    with pytest.raises(ConflictError) as exc_info:
        await recorder.record(LedgerEntry, OWNER, LedgerEntryType.CREDIT_NOTE, Decimal("99.00"))
    assert exc_info.value.status_code == 409

    stored = await db_session.get(LedgerEntry, "01HZX3J5T7Y9B1C3D5F7G9H1JK")
    await db_session.refresh(stored)
    assert stored.amount == Decimal("10.00")
    assert stored.type == LedgerEntryType.INVOICE
    assert await count_rows(db_session, LedgerEntry) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [
    0, -5, None, "abc", Decimal("Infinity"), True,
    Decimal("0.004"), Decimal("0.001"), Decimal("10.005"),
    Decimal("1000000000000"), Decimal("1E+12"), 10 ** 12,
])
async def test_invalid_amount_writes_nothing(db_session, amount):
    recorder = TransactionRecorder(db_session)
    with pytest.raises(ValidationError):
        await recorder.record(LedgerEntry, OWNER, LedgerEntryType.INVOICE, amount)
    assert await count_rows(db_session, LedgerEntry) == 0


@pytest.mark.asyncio
async def test_record_returns_the_stored_amount(db_session):
    recorder = TransactionRecorder(db_session)
    entry = await recorder.record(LedgerEntry, OWNER, LedgerEntryType.INVOICE, Decimal("12.5"))

    assert str(entry.amount) == "12.50"
    stored = await db_session.get(LedgerEntry, entry.id)
    await db_session.refresh(stored)
    assert stored.amount == entry.amount


@pytest.mark.asyncio
async def test_largest_amount_that_fits_is_accepted(db_session):
    recorder = TransactionRecorder(db_session)
    entry = await recorder.record(LedgerEntry, OWNER, LedgerEntryType.INVOICE, Decimal("999999999999.99"))
    assert entry.amount == Decimal("999999999999.99")


@pytest.mark.asyncio
@pytest.mark.parametrize("owner", ["", "   ", None])
async def test_missing_owner_writes_nothing(db_session, owner):
    recorder = TransactionRecorder(db_session)
    with pytest.raises(ValidationError):
        await recorder.record(LedgerEntry, owner, LedgerEntryType.INVOICE, 10)
    assert await count_rows(db_session, LedgerEntry) == 0


@pytest.mark.asyncio
async def test_type_outside_the_collection_is_rejected(db_session):
    recorder = TransactionRecorder(db_session)
    with pytest.raises(ValidationError):
        await recorder.record(CurrentAccountTransaction, OWNER, "INVOICE", 10)
    assert await count_rows(db_session, CurrentAccountTransaction) == 0


@pytest.mark.asyncio
async def test_store_failure_raises_persistence_error(db_session, mocker):
    mocker.patch.object(
        db_session, "execute",
        side_effect=OperationalError("INSERT", {}, Exception("connection lost"))
    )
    recorder = TransactionRecorder(db_session)

    with pytest.raises(PersistenceError) as exc_info:
        await recorder.record(LedgerEntry, OWNER, LedgerEntryType.INVOICE, 10)
    assert exc_info.value.status_code == 502


# Account status

@pytest.mark.asyncio
@pytest.mark.parametrize("value", [Decimal("0.004"), Decimal("1E+12"), -1])
async def test_account_status_rejects_unstorable_values(db_session, value):
    with pytest.raises(ValidationError):
        await AccountStatusService(db_session).create(OWNER, value)


@pytest.mark.asyncio
async def test_account_status_refresh_failure_raises_persistence_error(db_session, mocker):
    service = AccountStatusService(db_session)
    await service.create(OWNER, Decimal("100.00"))

    mocker.patch.object(
        db_session, "refresh",
        side_effect=OperationalError("SELECT", {}, Exception("connection lost"))
    )

    with pytest.raises(PersistenceError) as exc_info:
        await service.update(OWNER, Decimal("250.00"))
    assert exc_info.value.status_code == 502
