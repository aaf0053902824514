"""
Invoice database model.

Receivable or payable obligations.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, Numeric
from sqlalchemy.sql import func
from cogniflow.app.db.session import Base
from cogniflow.app.models.finance_enums import InvoiceStatus, InvoiceType


class Invoice(Base):
    """
    Invoice model.
    
    Workflow: PENDING -> PAID (explicit) or OVERDUE/CANCELLED.
    Marking an invoice paid does not post to the ledger.
    """
    __tablename__ = "invoices"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    invoice_number = Column(String(50), unique=True, index=True, nullable=False)
    client_name = Column(String(200), nullable=False, index=True)
    
    amount = Column(Numeric(18, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    
    issue_date = Column(DateTime, nullable=False, index=True)
    due_date = Column(DateTime, nullable=False, index=True)
    
    status = Column(Enum(InvoiceStatus), default=InvoiceStatus.PENDING, nullable=False, index=True)
    type = Column(Enum(InvoiceType), nullable=False, index=True)
    notes = Column(Text, nullable=True)
    
    paid_at = Column(DateTime, nullable=True)
    created_by = Column(Integer, nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Invoice(id={self.id}, number='{self.invoice_number}', status='{self.status.value}', amount={self.amount})>"
