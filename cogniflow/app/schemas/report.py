"""
Financial report schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional
from cogniflow.app.models.finance_enums import AccountType
from cogniflow.app.schemas.common import Money


class CashFlowPeriod(BaseModel):
    month: str  # YYYY-MM
    inflow: Money
    outflow: Money
    net: Money


class CashFlowReport(BaseModel):
    title: str = "Cash Flow Statement"
    start_date: datetime
    end_date: datetime
    inflow: Money
    outflow: Money
    net: Money
    periods: List[CashFlowPeriod]


class CategoryAmount(BaseModel):
    category: str
    amount: Money


class IncomeStatement(BaseModel):
    title: str = "Income Statement"
    generated_at: datetime
    revenue: Money
    expenses: Money
    net_income: Money
    revenue_breakdown: List[CategoryAmount]
    expense_breakdown: List[CategoryAmount]


class AccountLine(BaseModel):
    name: str
    type: AccountType
    balance: Money


class BalanceSheet(BaseModel):
    title: str = "Balance Sheet"
    generated_at: datetime
    assets: List[AccountLine]
    liabilities: List[AccountLine]
    equity: List[AccountLine]
    total_assets: Money
    total_liabilities: Money
    total_equity: Money
    is_balanced: bool
    difference: Money
    warning: Optional[str] = None
