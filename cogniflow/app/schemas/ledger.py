"""
General Ledger Pydantic schemas.
"""

from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional
from cogniflow.app.schemas.common import Money


class LedgerEntryCreate(BaseModel):
    """
    Schema for posting a ledger entry.
    
    Exactly one of debit/credit must be non-zero. entry_number is generated
    when omitted.
    """
    entry_number: Optional[str] = Field(None, min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=500)
    debit: Decimal = Field(default=Decimal("0"), ge=0, max_digits=18, decimal_places=2)
    credit: Decimal = Field(default=Decimal("0"), ge=0, max_digits=18, decimal_places=2)
    account_name: str = Field(..., min_length=1, max_length=200)
    date: Optional[datetime] = None
    transaction_id: Optional[int] = None
    
    class Config:
        str_strip_whitespace = True
    
    @model_validator(mode="after")
    def one_sided(self):
        if (self.debit > 0) == (self.credit > 0):
            raise ValueError("Exactly one of debit or credit must be non-zero")
        return self


class LedgerEntryResponse(BaseModel):
    """Schema for ledger entry response."""
    id: int
    entry_number: str
    description: str
    debit: Money
    credit: Money
    account_name: str
    account_id: int
    transaction_id: Optional[int]
    date: datetime
    created_by: Optional[int]
    created_at: datetime
    
    class Config:
        from_attributes = True


class LedgerPostingResponse(BaseModel):
    """Posted entry plus the account balance after posting."""
    entry: LedgerEntryResponse
    account_balance: Money
