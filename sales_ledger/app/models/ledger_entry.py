"""
Ledger Entry database model.

Immutable sales ledger movements, partitioned by owner.
"""

from sqlalchemy import Column, String, Numeric, DateTime, Enum
from sales_ledger.app.db.session import Base
from sales_ledger.app.models.enums import LedgerEntryType


class LedgerEntry(Base):
    """
    Ledger Entry model.

    One financial movement on a customer's sales ledger. The amount is
    always a positive magnitude; the sign comes from the entry type.
    NO updates or deletions allowed.
    """
    __tablename__ = "ledger_entries"

    id = Column(String(26), primary_key=True)  # ULID, time-sortable

    owner = Column(String(128), nullable=False, index=True)

    type = Column(Enum(LedgerEntryType), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(String(255), nullable=True)

    created_by_admin = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<LedgerEntry(id={self.id}, type='{self.type.value}', amount={self.amount})>"
