"""
Monthly ledger statistics.

Calendar months are UTC. Month-end balances include every record created
before the first instant of the following month.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from sales_ledger.app.domain.ledger.balance import compute_balance, compute_current_account_balance
from sales_ledger.app.models.enums import LedgerEntryType, CurrentAccountTransactionType

CENT = Decimal("0.01")


@dataclass(frozen=True)
class MonthlyStatistics:
    month: str  # YYYY-MM
    total_invoices: Decimal
    total_credit_notes: Decimal
    total_increase_adjustments: Decimal
    total_decrease_adjustments: Decimal
    total_payment_requests: Decimal
    total_cash_receipts: Decimal
    month_end_sales_ledger_balance: Decimal
    month_end_current_account_balance: Decimal
    days_sales_outstanding: Optional[Decimal]


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _shift_month(year: int, month: int, delta: int):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _total(records: Iterable, record_type) -> Decimal:
    return sum((Decimal(str(r.amount)) for r in records if r.type == record_type), Decimal("0"))


def compute_monthly_statistics(
    entries: Iterable,
    transactions: Iterable,
    as_of: datetime,
    months: int = 12,
) -> List[MonthlyStatistics]:
    """
    Statistics for the `months` calendar months ending with the month of
    `as_of`, oldest first.

    Days sales outstanding is month-end ledger balance divided by the
    month's invoiced total, times the days in the month. It is None for
    a month without invoices.
    """
    entries = [(e, _as_utc(e.created_at)) for e in entries]
    transactions = [(t, _as_utc(t.created_at)) for t in transactions]
    as_of = _as_utc(as_of)

    results = []
    for offset in range(months - 1, -1, -1):
        year, month = _shift_month(as_of.year, as_of.month, -offset)
        start = _month_start(year, month)
        end = _month_start(*_shift_month(year, month, 1))

        month_entries = [e for e, created in entries if start <= created < end]
        month_transactions = [t for t, created in transactions if start <= created < end]

        ledger_balance = compute_balance(e for e, created in entries if created < end)
        account_balance = compute_current_account_balance(t for t, created in transactions if created < end)

        total_invoices = _total(month_entries, LedgerEntryType.INVOICE)
        dso = None
        if total_invoices > 0:
            days = calendar.monthrange(year, month)[1]
            dso = (ledger_balance / total_invoices * days).quantize(CENT, rounding=ROUND_HALF_UP)

        results.append(MonthlyStatistics(
            month=f"{year:04d}-{month:02d}",
            total_invoices=total_invoices,
            total_credit_notes=_total(month_entries, LedgerEntryType.CREDIT_NOTE),
            total_increase_adjustments=_total(month_entries, LedgerEntryType.INCREASE_ADJUSTMENT),
            total_decrease_adjustments=_total(month_entries, LedgerEntryType.DECREASE_ADJUSTMENT),
            total_payment_requests=_total(month_transactions, CurrentAccountTransactionType.PAYMENT_REQUEST),
            total_cash_receipts=_total(month_transactions, CurrentAccountTransactionType.CASH_RECEIPT),
            month_end_sales_ledger_balance=ledger_balance,
            month_end_current_account_balance=account_balance,
            days_sales_outstanding=dso,
        ))

    return results
