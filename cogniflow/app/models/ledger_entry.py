"""
Ledger Entry database model.

Immutable debit/credit lines posted against one account.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric
from sqlalchemy.sql import func
from cogniflow.app.db.session import Base


class LedgerEntry(Base):
    """
    Ledger Entry model.
    
    Immutable record of a debit or credit movement on a single account.
    Creating an entry is the only thing that changes an account balance.
    NO updates or deletions allowed.
    """
    __tablename__ = "ledger_entries"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    entry_number = Column(String(50), unique=True, index=True, nullable=False)
    description = Column(String(500), nullable=False)
    
    # Financials (exactly one side is non-zero)
    debit = Column(Numeric(18, 2), nullable=False, default=0)
    credit = Column(Numeric(18, 2), nullable=False, default=0)
    
    # Linkage
    account_name = Column(String(200), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey('accounts.id'), nullable=False, index=True)
    transaction_id = Column(Integer, ForeignKey('transactions.id'), nullable=True, index=True)
    
    date = Column(DateTime, nullable=False, index=True)
    created_by = Column(Integer, nullable=True)
    
    # Timestamps (Immutable - no updated_at)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<LedgerEntry(id={self.id}, number='{self.entry_number}', debit={self.debit}, credit={self.credit})>"
