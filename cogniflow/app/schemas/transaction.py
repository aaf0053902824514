"""
Transaction Pydantic schemas.
"""

from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from cogniflow.app.models.finance_enums import TransactionType, TransactionStatus
from cogniflow.app.schemas.common import Money


def _check_amount_sign(amount: Optional[Decimal], tx_type: Optional[TransactionType]) -> None:
    """Income/expense/transfer amounts are positive; adjustments just non-zero."""
    if amount is None:
        return
    if amount == 0:
        raise ValueError("Amount must be non-zero")
    if tx_type is not None and tx_type != TransactionType.ADJUSTMENT and amount < 0:
        raise ValueError(f"Amount must be positive for {tx_type.value} transactions")


class TransactionCreate(BaseModel):
    """Schema for recording a transaction. transaction_number is generated when omitted."""
    transaction_number: Optional[str] = Field(None, min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal = Field(..., max_digits=18, decimal_places=2)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    type: TransactionType
    category: str = Field(..., min_length=1, max_length=100)
    status: TransactionStatus = TransactionStatus.PENDING
    date: Optional[datetime] = None
    
    class Config:
        str_strip_whitespace = True
    
    @model_validator(mode="after")
    def amount_matches_type(self):
        _check_amount_sign(self.amount, self.type)
        return self


class TransactionUpdate(BaseModel):
    """Partial update; the transaction number is immutable."""
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    amount: Optional[Decimal] = Field(None, max_digits=18, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    type: Optional[TransactionType] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[TransactionStatus] = None
    date: Optional[datetime] = None
    
    class Config:
        str_strip_whitespace = True
    
    @model_validator(mode="after")
    def amount_matches_type(self):
        _check_amount_sign(self.amount, self.type)
        return self


class TransactionResponse(BaseModel):
    """Schema for transaction response."""
    id: int
    transaction_number: str
    description: str
    amount: Money
    currency: str
    type: TransactionType
    category: str
    status: TransactionStatus
    date: datetime
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    """Schema for transaction list."""
    transactions: List[TransactionResponse]
    total: int
