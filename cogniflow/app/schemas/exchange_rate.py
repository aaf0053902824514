"""
Exchange rate schemas. Rates are stored only; nothing converts with them.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional


class ExchangeRateCreate(BaseModel):
    base_currency: str = Field(..., min_length=3, max_length=3)
    target_currency: str = Field(..., min_length=3, max_length=3)
    rate: Decimal = Field(..., gt=0, max_digits=18, decimal_places=8)
    date: Optional[datetime] = None
    
    @field_validator("base_currency", "target_currency")
    @classmethod
    def upper(cls, v: str) -> str:
        return v.strip().upper()


class ExchangeRateResponse(BaseModel):
    id: int
    base_currency: str
    target_currency: str
    rate: Decimal
    date: datetime
    created_at: datetime
    
    class Config:
        from_attributes = True
