"""
Exchange Rate database model.

Stored quotes only; nothing in the ledger converts between currencies.
"""

from sqlalchemy import Column, Integer, String, DateTime, Numeric
from sqlalchemy.sql import func
from cogniflow.app.db.session import Base


class ExchangeRate(Base):
    """Exchange rate quote for a currency pair at a point in time."""
    __tablename__ = "exchange_rates"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    base_currency = Column(String(3), nullable=False, index=True)
    target_currency = Column(String(3), nullable=False, index=True)
    rate = Column(Numeric(18, 8), nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<ExchangeRate({self.base_currency}/{self.target_currency}={self.rate})>"
