"""
Account Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from cogniflow.app.models.finance_enums import AccountType
from cogniflow.app.schemas.common import Money


class AccountCreate(BaseModel):
    """Schema for creating a ledger account."""
    name: str = Field(..., min_length=1, max_length=200)
    type: AccountType
    opening_balance: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=2)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    is_active: bool = True
    
    class Config:
        str_strip_whitespace = True


class AccountUpdate(BaseModel):
    """Schema for updating an account. Type and balance are not editable."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    is_active: Optional[bool] = None
    
    class Config:
        str_strip_whitespace = True


class AccountResponse(BaseModel):
    """Schema for account response."""
    id: int
    name: str
    type: AccountType
    balance: Money
    currency: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True
