"""
Dashboard Service.

KPI cards and chart series for the dashboard. Read-only.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cogniflow.app.core.money import ZERO, percent_change, to_money
from cogniflow.app.core.timeutils import add_months, month_start, utcnow
from cogniflow.app.models.finance_enums import InvoiceStatus, InvoiceType, TransactionStatus, TransactionType
from cogniflow.app.models.invoice import Invoice
from cogniflow.app.models.transaction import Transaction
from cogniflow.app.schemas.dashboard import ChartData, ChartDataset, Kpi, KpiResponse
from cogniflow.app.services.reports import month_keys, transactions_between

OPEN_INVOICE_STATUSES = (InvoiceStatus.PENDING, InvoiceStatus.OVERDUE)


def _trend(current: Decimal, previous: Decimal) -> str:
    if current > previous:
        return "up"
    if current < previous:
        return "down"
    return "flat"


def _kpi(key: str, title: str, current: Decimal, previous: Decimal) -> Kpi:
    return Kpi(
        key=key,
        title=title,
        value=current,
        change_percent=percent_change(current, previous),
        trend=_trend(current, previous)
    )


async def _income_expense(db: AsyncSession, start: datetime, end: datetime):
    income, expense = ZERO, ZERO
    for tx in await transactions_between(db, start, end):
        if tx.type == TransactionType.INCOME:
            income += to_money(tx.amount)
        else:
            expense += to_money(tx.amount)
    return income, expense


async def _outstanding_receivables(db: AsyncSession, issued_before: datetime) -> Decimal:
    result = await db.execute(
        select(Invoice.amount).where(
            Invoice.type == InvoiceType.ACCOUNTS_RECEIVABLE,
            Invoice.status.in_(OPEN_INVOICE_STATUSES),
            Invoice.issue_date <= issued_before
        )
    )
    return sum((to_money(amount) for amount in result.scalars().all()), ZERO)


class DashboardService:

    @staticmethod
    async def get_kpis(db: AsyncSession, now: Optional[datetime] = None) -> KpiResponse:
        """This month so far vs. last month: cash flow, revenue, expenses, open receivables."""
        now = now or utcnow()
        this_month = month_start(now)
        last_month = add_months(this_month, -1)

        income, expense = await _income_expense(db, this_month, now)
        prev_income, prev_expense = await _income_expense(db, last_month, this_month - timedelta(microseconds=1))

        receivables = await _outstanding_receivables(db, now)
        prev_receivables = await _outstanding_receivables(db, this_month)

        return KpiResponse(kpis=[
            _kpi("cash_flow", "Cash Flow", income - expense, prev_income - prev_expense),
            _kpi("revenue", "Revenue", income, prev_income),
            _kpi("expenses", "Expenses", expense, prev_expense),
            _kpi("receivables", "Outstanding Receivables", receivables, prev_receivables),
        ])

    @staticmethod
    async def revenue_chart(db: AsyncSession, months: int = 6, now: Optional[datetime] = None) -> ChartData:
        """Monthly income and expenses for the last `months` months."""
        now = now or utcnow()
        start = add_months(month_start(now), -(months - 1))
        labels = month_keys(start, now)
        income: Dict[str, Decimal] = {label: ZERO for label in labels}
        expense: Dict[str, Decimal] = {label: ZERO for label in labels}

        for tx in await transactions_between(db, start, now):
            target = income if tx.type == TransactionType.INCOME else expense
            target[tx.date.strftime("%Y-%m")] += to_money(tx.amount)

        return ChartData(
            labels=labels,
            datasets=[
                ChartDataset(label="Revenue", data=[income[label] for label in labels]),
                ChartDataset(label="Expenses", data=[expense[label] for label in labels]),
            ]
        )

    @staticmethod
    async def expense_categories_chart(db: AsyncSession) -> ChartData:
        """Expense totals per category, largest first."""
        result = await db.execute(
            select(Transaction).where(
                Transaction.type == TransactionType.EXPENSE,
                Transaction.status != TransactionStatus.CANCELLED
            )
        )
        totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        for tx in result.scalars().all():
            totals[tx.category] += to_money(tx.amount)

        ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
        return ChartData(
            labels=[category for category, _ in ranked],
            datasets=[ChartDataset(label="Expenses by Category", data=[amount for _, amount in ranked])]
        )
