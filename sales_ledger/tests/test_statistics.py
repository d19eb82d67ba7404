"""
Monthly statistics tests.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sales_ledger.app.domain.ledger.statistics import compute_monthly_statistics
from sales_ledger.app.models.enums import LedgerEntryType, CurrentAccountTransactionType


@dataclass
class Record:
    type: str
    amount: Decimal
    created_at: datetime


def at(year, month, day):
    return datetime(year, month, day, 12, 0, tzinfo=timezone.utc)


AS_OF = at(2024, 3, 15)


def test_months_are_oldest_first_and_labelled():
    stats = compute_monthly_statistics([], [], as_of=AS_OF, months=4)
    assert [s.month for s in stats] == ["2023-12", "2024-01", "2024-02", "2024-03"]
    assert all(s.days_sales_outstanding is None for s in stats)


def test_monthly_totals_and_month_end_balances():
    entries = [
        Record(LedgerEntryType.INVOICE, Decimal("2900.00"), at(2024, 2, 3)),
        Record(LedgerEntryType.CREDIT_NOTE, Decimal("100.00"), at(2024, 2, 10)),
        Record(LedgerEntryType.INVOICE, Decimal("1000.00"), at(2024, 3, 1)),
        Record(LedgerEntryType.CASH_RECEIPT, Decimal("800.00"), at(2024, 3, 2)),
    ]
    transactions = [
        Record(CurrentAccountTransactionType.PAYMENT_REQUEST, Decimal("500.00"), at(2024, 2, 20)),
        Record(CurrentAccountTransactionType.CASH_RECEIPT, Decimal("200.00"), at(2024, 3, 5)),
    ]

    february, march = compute_monthly_statistics(entries, transactions, as_of=AS_OF, months=2)

    assert february.month == "2024-02"
    assert february.total_invoices == Decimal("2900.00")
    assert february.total_credit_notes == Decimal("100.00")
    assert february.total_payment_requests == Decimal("500.00")
    assert february.month_end_sales_ledger_balance == Decimal("2800.00")
    assert february.month_end_current_account_balance == Decimal("500.00")
    # 2800 / 2900 * 29 days
    assert february.days_sales_outstanding == Decimal("28.00")

    assert march.total_invoices == Decimal("1000.00")
    assert march.total_cash_receipts == Decimal("200.00")
    assert march.month_end_sales_ledger_balance == Decimal("3000.00")
    assert march.month_end_current_account_balance == Decimal("300.00")
    assert march.days_sales_outstanding == Decimal("93.00")


def test_naive_timestamps_are_treated_as_utc():
    entries = [Record(LedgerEntryType.INVOICE, Decimal("10"), datetime(2024, 3, 1, 0, 0))]
    stats = compute_monthly_statistics(entries, [], as_of=AS_OF, months=2)
    assert stats[0].total_invoices == Decimal("0")
    assert stats[1].total_invoices == Decimal("10")


def test_year_boundary():
    stats = compute_monthly_statistics([], [], as_of=at(2024, 1, 31), months=2)
    assert [s.month for s in stats] == ["2023-12", "2024-01"]
