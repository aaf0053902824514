"""
Financial Report API Endpoints.

Reports are computed on every request; nothing is cached.
"""

from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from cogniflow.app.db.session import get_db
from cogniflow.app.core.dependencies import get_current_user
from cogniflow.app.schemas.report import CashFlowReport, IncomeStatement, BalanceSheet
from cogniflow.app.services.reports import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/cash-flow", response_model=CashFlowReport)
async def get_cash_flow_report(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Inflow, outflow and net per month. Defaults to the last six months."""
    return await ReportService.cash_flow_report(db, start_date, end_date)


@router.get("/income-statement", response_model=IncomeStatement)
async def get_income_statement(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ReportService.income_statement(db)


@router.get("/balance-sheet", response_model=BalanceSheet)
async def get_balance_sheet(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Balance sheet; is_balanced=False plus a warning when the books disagree.

    Side effect: a mismatch also stores a warning insight (at most one per day
    and difference), so this GET can write to ai_insights.
    """
    return await ReportService.balance_sheet(db)
