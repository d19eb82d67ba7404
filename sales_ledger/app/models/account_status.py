"""
Account Status database model.

Holds the admin-controlled unapproved invoice adjustment for one owner.
"""

from sqlalchemy import Column, String, Numeric, DateTime
from sales_ledger.app.db.session import Base


class AccountStatus(Base):
    """
    Account Status model.

    The primary key IS the owner identity, so an owner can never have
    more than one status row.
    """
    __tablename__ = "account_statuses"

    id = Column(String(128), primary_key=True)
    owner = Column(String(128), nullable=False, index=True)

    total_unapproved_invoice_value = Column(Numeric(14, 2), nullable=False)

    created_by_admin = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<AccountStatus(id={self.id}, unapproved={self.total_unapproved_invoice_value})>"
