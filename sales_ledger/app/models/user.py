"""
Directory User database model.

Local mirror of the identity directory the ledger authenticates against.
"""

from sqlalchemy import Column, String, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from sales_ledger.app.db.session import Base


class DirectoryUser(Base):
    """
    Directory user: identity, group memberships and free-form attributes.

    `sub` is the owner identity used as the partition key by every
    ledger collection.
    """
    __tablename__ = "directory_users"

    sub = Column(String(128), primary_key=True)
    username = Column(String(128), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=True)
    enabled = Column(Boolean, default=True, nullable=False)
    status = Column(String(50), default="CONFIRMED", nullable=False)

    attributes = Column(JSON, nullable=True)  # {"name": "value", ...}
    groups = Column(JSON, nullable=True)  # ["Admin", ...]

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<DirectoryUser(sub={self.sub}, username='{self.username}', enabled={self.enabled})>"
