"""
Ledger enumerations.

Defines the movement types of the sales ledger and the current account.
"""

import enum


class LedgerEntryType(str, enum.Enum):
    """
    Sales ledger entry type enumeration.

    Types:
        INVOICE: Raises the receivable balance
        CREDIT_NOTE: Reduces the receivable balance
        INCREASE_ADJUSTMENT: Manual upward correction
        DECREASE_ADJUSTMENT: Manual downward correction
        CASH_RECEIPT: Customer payment applied to the ledger
    """
    INVOICE = "INVOICE"
    CREDIT_NOTE = "CREDIT_NOTE"
    INCREASE_ADJUSTMENT = "INCREASE_ADJUSTMENT"
    DECREASE_ADJUSTMENT = "DECREASE_ADJUSTMENT"
    CASH_RECEIPT = "CASH_RECEIPT"


class CurrentAccountTransactionType(str, enum.Enum):
    """Current account movement type enumeration."""
    PAYMENT_REQUEST = "PAYMENT_REQUEST"  # Cash drawn down, balance goes up
    CASH_RECEIPT = "CASH_RECEIPT"  # Cash received, balance goes down
