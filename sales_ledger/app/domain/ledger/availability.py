"""
Availability Calculator.

Derives gross and net credit availability from the sales ledger
balance, the admin-set unapproved invoice value and the current
account balance.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
DEFAULT_ADVANCE_RATE = Decimal("0.90")


@dataclass(frozen=True)
class Availability:
    gross: Decimal
    net: Decimal


def _as_decimal(value, name: str) -> Decimal:
    value = value if isinstance(value, Decimal) else Decimal(str(value))
    if not value.is_finite():
        raise ValueError(f"{name} must be a finite number")
    return value


def compute_availability(
    sales_ledger_balance,
    total_unapproved_invoice_value,
    current_account_balance,
    advance_rate=DEFAULT_ADVANCE_RATE,
) -> Availability:
    """
    gross = advance_rate * (sales_ledger_balance - total_unapproved_invoice_value)
    net = gross - current_account_balance

    Neither value is floored at zero: a customer whose unapproved
    invoices exceed the ledger balance gets a negative gross. Results are
    rounded half-up to the penny.
    """
    balance = _as_decimal(sales_ledger_balance, "sales_ledger_balance")
    unapproved = _as_decimal(total_unapproved_invoice_value, "total_unapproved_invoice_value")
    drawn = _as_decimal(current_account_balance, "current_account_balance")
    rate = _as_decimal(advance_rate, "advance_rate")

    gross = (rate * (balance - unapproved)).quantize(CENT, rounding=ROUND_HALF_UP)
    net = (gross - drawn).quantize(CENT, rounding=ROUND_HALF_UP)
    return Availability(gross=gross, net=net)


class AvailabilityCalculator:
    """Availability calculator bound to a configured advance rate."""

    def __init__(self, advance_rate=DEFAULT_ADVANCE_RATE):
        self.advance_rate = _as_decimal(advance_rate, "advance_rate")

    def compute(self, sales_ledger_balance, total_unapproved_invoice_value, current_account_balance) -> Availability:
        return compute_availability(
            sales_ledger_balance,
            total_unapproved_invoice_value,
            current_account_balance,
            self.advance_rate,
        )
