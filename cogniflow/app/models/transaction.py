"""
Transaction database model.

Business-level financial events (income, expense, transfer, adjustment).
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum, Numeric
from sqlalchemy.sql import func
from cogniflow.app.db.session import Base
from cogniflow.app.models.finance_enums import TransactionType, TransactionStatus


class Transaction(Base):
    """
    Transaction model.
    
    Independent of ledger entries: recording a transaction does not post to
    the ledger. Ledger entries may point back here through transaction_id.
    """
    __tablename__ = "transactions"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    transaction_number = Column(String(50), unique=True, index=True, nullable=False)
    description = Column(String(500), nullable=False)
    
    amount = Column(Numeric(18, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    
    type = Column(Enum(TransactionType), nullable=False, index=True)
    category = Column(String(100), nullable=False, index=True)
    status = Column(Enum(TransactionStatus), default=TransactionStatus.PENDING, nullable=False, index=True)
    
    date = Column(DateTime, nullable=False, index=True)
    created_by = Column(Integer, nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Transaction(id={self.id}, number='{self.transaction_number}', type='{self.type.value}', amount={self.amount})>"
