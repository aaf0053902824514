"""
Invoice Pydantic schemas.
"""

from pydantic import BaseModel, Field, computed_field, model_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional
from cogniflow.app.core.timeutils import utcnow, to_naive_utc
from cogniflow.app.models.finance_enums import InvoiceStatus, InvoiceType
from cogniflow.app.schemas.common import Money


class InvoiceCreate(BaseModel):
    """Schema for creating an invoice. invoice_number is generated when omitted."""
    invoice_number: Optional[str] = Field(None, min_length=1, max_length=50)
    client_name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    issue_date: Optional[datetime] = None
    due_date: datetime
    type: InvoiceType
    notes: Optional[str] = Field(None, max_length=2000)
    
    class Config:
        str_strip_whitespace = True
    
    @model_validator(mode="after")
    def due_after_issue(self):
        if self.issue_date and to_naive_utc(self.due_date) < to_naive_utc(self.issue_date):
            raise ValueError("due_date must not be before issue_date")
        return self


class InvoiceUpdate(BaseModel):
    """Partial update; the invoice number and type are immutable."""
    client_name: Optional[str] = Field(None, min_length=1, max_length=200)
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=18, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    due_date: Optional[datetime] = None
    status: Optional[InvoiceStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)
    
    class Config:
        str_strip_whitespace = True


class InvoiceResponse(BaseModel):
    """Schema for invoice response."""
    id: int
    invoice_number: str
    client_name: str
    amount: Money
    currency: str
    issue_date: datetime
    due_date: datetime
    status: InvoiceStatus
    type: InvoiceType
    notes: Optional[str]
    paid_at: Optional[datetime]
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True
    
    @computed_field
    @property
    def is_overdue(self) -> bool:
        """Pending past its due date (status itself is never auto-changed)."""
        if self.status == InvoiceStatus.OVERDUE:
            return True
        return self.status == InvoiceStatus.PENDING and to_naive_utc(self.due_date) < utcnow()
