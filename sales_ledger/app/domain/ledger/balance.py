"""
Balance Aggregator.

Folds complete record histories into running balances. Nothing is
cached: every read recomputes from the full history of one owner.
"""

from decimal import Decimal
from typing import Iterable

from sales_ledger.app.models.enums import LedgerEntryType, CurrentAccountTransactionType


# +1 raises the balance, -1 lowers it
LEDGER_SIGNS = {
    LedgerEntryType.INVOICE: 1,
    LedgerEntryType.INCREASE_ADJUSTMENT: 1,
    LedgerEntryType.CREDIT_NOTE: -1,
    LedgerEntryType.DECREASE_ADJUSTMENT: -1,
    LedgerEntryType.CASH_RECEIPT: -1,
}

CURRENT_ACCOUNT_SIGNS = {
    CurrentAccountTransactionType.PAYMENT_REQUEST: 1,
    CurrentAccountTransactionType.CASH_RECEIPT: -1,
}


def _fold(records: Iterable, signs: dict, enum_cls) -> Decimal:
    balance = Decimal("0")
    for record in records:
        sign = signs[enum_cls(record.type)]
        amount = record.amount if isinstance(record.amount, Decimal) else Decimal(str(record.amount))
        balance += sign * amount
    return balance


def compute_balance(entries: Iterable) -> Decimal:
    """
    Sales ledger balance of a sequence of ledger entries.

    INVOICE and INCREASE_ADJUSTMENT add their amount; CREDIT_NOTE,
    DECREASE_ADJUSTMENT and CASH_RECEIPT subtract it. An empty sequence
    yields 0. The result does not depend on the order of the entries.
    """
    return _fold(entries, LEDGER_SIGNS, LedgerEntryType)


def compute_current_account_balance(transactions: Iterable) -> Decimal:
    """Drawn balance: PAYMENT_REQUEST adds, CASH_RECEIPT subtracts."""
    return _fold(transactions, CURRENT_ACCOUNT_SIGNS, CurrentAccountTransactionType)
