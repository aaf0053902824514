"""
Account database model.

A named ledger account carrying a running balance.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, Numeric
from sqlalchemy.sql import func
from cogniflow.app.db.session import Base
from cogniflow.app.models.finance_enums import AccountType


class Account(Base):
    """
    Ledger account model.
    
    The balance is written only by the posting path (LedgerService), as an
    atomic `balance = balance + delta` update. Accounts are never deleted;
    they are deactivated through is_active.
    """
    __tablename__ = "accounts"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), unique=True, index=True, nullable=False)
    type = Column(Enum(AccountType), nullable=False, index=True)
    
    balance = Column(Numeric(18, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    
    # Status (soft delete)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Account(id={self.id}, name='{self.name}', type='{self.type.value}', balance={self.balance})>"
