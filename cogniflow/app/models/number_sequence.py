"""
Number Sequence database model.

Monotonic counters backing business numbers (TRX-202601-0001 and friends).
"""

from sqlalchemy import Column, Integer, String, UniqueConstraint
from cogniflow.app.db.session import Base


class NumberSequence(Base):
    """
    One counter row per (prefix, period).
    
    Incremented with an atomic `last_value = last_value + 1` update.
    """
    __tablename__ = "number_sequences"
    __table_args__ = (UniqueConstraint("prefix", "period", name="uq_number_sequence_prefix_period"),)
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    prefix = Column(String(10), nullable=False)
    period = Column(String(6), nullable=False)  # YYYYMM
    last_value = Column(Integer, nullable=False, default=0)
    
    def __repr__(self):
        return f"<NumberSequence({self.prefix}-{self.period}: {self.last_value})>"
