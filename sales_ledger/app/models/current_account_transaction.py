"""
Current Account Transaction database model.

Movements on the drawn-down cash account, separate from the sales ledger.
"""

from sqlalchemy import Column, String, Numeric, DateTime, Enum
from sales_ledger.app.db.session import Base
from sales_ledger.app.models.enums import CurrentAccountTransactionType


class CurrentAccountTransaction(Base):
    """
    Current Account Transaction model.

    Created by the self-service payment request flow (owner = caller) or
    by an admin on behalf of a customer (created_by_admin set).
    Never updated or deleted.
    """
    __tablename__ = "current_account_transactions"

    id = Column(String(26), primary_key=True)

    owner = Column(String(128), nullable=False, index=True)

    type = Column(Enum(CurrentAccountTransactionType), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(String(255), nullable=True)

    created_by_admin = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<CurrentAccountTransaction(id={self.id}, type='{self.type.value}', amount={self.amount})>"
