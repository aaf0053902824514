"""
Report Service.

Point-in-time financial views computed from accounts and transactions on
every call. Nothing here is persisted, except the warning insight recorded
when the balance sheet does not balance.
"""

import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cogniflow.app.core.config import settings
from cogniflow.app.core.exceptions import InconsistentStateError, ValidationError
from cogniflow.app.core.money import ZERO, to_money
from cogniflow.app.core.timeutils import add_months, month_start, to_naive_utc, utcnow
from cogniflow.app.models.account import Account
from cogniflow.app.models.finance_enums import (
    AccountType, InsightSeverity, InsightType, TransactionStatus, TransactionType
)
from cogniflow.app.models.transaction import Transaction
from cogniflow.app.schemas.report import (
    AccountLine, BalanceSheet, CashFlowPeriod, CashFlowReport, CategoryAmount, IncomeStatement
)
from cogniflow.app.services.insights import InsightDraft, make_dedup_key, record_insight

logger = logging.getLogger(__name__)

BALANCE_SHEET_RULE = "balance_sheet_identity"


def month_keys(start: datetime, end: datetime) -> List[str]:
    """YYYY-MM labels for every month touched by [start, end]."""
    keys = []
    cursor = month_start(start)
    last = month_start(end)
    while cursor <= last:
        keys.append(cursor.strftime("%Y-%m"))
        cursor = add_months(cursor, 1)
    return keys


async def transactions_between(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    types: tuple = (TransactionType.INCOME, TransactionType.EXPENSE)
) -> List[Transaction]:
    """Non-cancelled transactions of the given types with start <= date <= end."""
    query = select(Transaction).where(
        Transaction.date >= start,
        Transaction.date <= end,
        Transaction.status != TransactionStatus.CANCELLED,
        Transaction.type.in_(types)
    ).order_by(Transaction.date, Transaction.id)
    result = await db.execute(query)
    return result.scalars().all()


class ReportService:

    @staticmethod
    async def cash_flow_report(
        db: AsyncSession,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> CashFlowReport:
        """
        Income vs expense over a date range, with a monthly breakdown.

        Defaults to the current month and the five before it. An empty range
        yields zeros.
        """
        end = to_naive_utc(end_date) or utcnow()
        start = to_naive_utc(start_date) or add_months(month_start(end), -5)
        if start > end:
            raise ValidationError("start_date must not be after end_date", {
                "start_date": start.isoformat(), "end_date": end.isoformat()
            })

        buckets = {key: [ZERO, ZERO] for key in month_keys(start, end)}
        for tx in await transactions_between(db, start, end):
            slot = buckets[tx.date.strftime("%Y-%m")]
            if tx.type == TransactionType.INCOME:
                slot[0] += to_money(tx.amount)
            else:
                slot[1] += to_money(tx.amount)

        periods = [
            CashFlowPeriod(month=key, inflow=inflow, outflow=outflow, net=inflow - outflow)
            for key, (inflow, outflow) in buckets.items()
        ]
        inflow = sum((p.inflow for p in periods), ZERO)
        outflow = sum((p.outflow for p in periods), ZERO)

        return CashFlowReport(
            start_date=start,
            end_date=end,
            inflow=inflow,
            outflow=outflow,
            net=inflow - outflow,
            periods=periods
        )

    @staticmethod
    async def income_statement(db: AsyncSession) -> IncomeStatement:
        """
        Revenue and expense totals from the configured accounts.

        The category breakdown comes from non-cancelled transactions.
        """
        names = (settings.revenue_account_name, settings.expense_account_name)
        result = await db.execute(select(Account).where(Account.name.in_(names)).execution_options(populate_existing=True))
        balances = {account.name: to_money(account.balance) for account in result.scalars().all()}
        revenue = balances.get(settings.revenue_account_name, ZERO)
        expenses = balances.get(settings.expense_account_name, ZERO)

        by_category: Dict[TransactionType, Dict[str, Decimal]] = {
            TransactionType.INCOME: defaultdict(lambda: ZERO),
            TransactionType.EXPENSE: defaultdict(lambda: ZERO),
        }
        tx_result = await db.execute(
            select(Transaction).where(
                Transaction.status != TransactionStatus.CANCELLED,
                Transaction.type.in_(tuple(by_category))
            )
        )
        for tx in tx_result.scalars().all():
            by_category[tx.type][tx.category] += to_money(tx.amount)

        def breakdown(totals: Dict[str, Decimal]) -> List[CategoryAmount]:
            ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
            return [CategoryAmount(category=c, amount=a) for c, a in ranked]

        return IncomeStatement(
            generated_at=utcnow(),
            revenue=revenue,
            expenses=expenses,
            net_income=revenue - expenses,
            revenue_breakdown=breakdown(by_category[TransactionType.INCOME]),
            expense_breakdown=breakdown(by_category[TransactionType.EXPENSE])
        )

    @staticmethod
    async def balance_sheet(db: AsyncSession) -> BalanceSheet:
        """
        Assets, liabilities and equity with per-account lines.

        When assets != liabilities + equity the sheet is still returned, with
        is_balanced=False, the difference and a warning. The mismatch is
        logged and recorded once per day as a warning insight.
        """
        result = await db.execute(select(Account).order_by(Account.name).execution_options(populate_existing=True))
        sections: Dict[AccountType, List[AccountLine]] = {
            AccountType.ASSET: [], AccountType.LIABILITY: [], AccountType.EQUITY: []
        }
        for account in result.scalars().all():
            if account.type in sections:
                sections[account.type].append(
                    AccountLine(name=account.name, type=account.type, balance=to_money(account.balance))
                )

        def total(lines: List[AccountLine]) -> Decimal:
            return sum((line.balance for line in lines), ZERO)

        total_assets = total(sections[AccountType.ASSET])
        total_liabilities = total(sections[AccountType.LIABILITY])
        total_equity = total(sections[AccountType.EQUITY])
        difference = total_assets - (total_liabilities + total_equity)
        is_balanced = difference == 0

        warning = None
        if not is_balanced:
            error = InconsistentStateError(
                "Balance sheet does not balance: assets != liabilities + equity",
                {
                    "total_assets": str(total_assets),
                    "total_liabilities": str(total_liabilities),
                    "total_equity": str(total_equity),
                    "difference": str(difference),
                }
            )
            logger.warning("%s %s", error.message, error.details)
            warning = f"{error.message} (difference {difference})"
            await record_insight(db, InsightDraft(
                type=InsightType.ANOMALY,
                title="Balance sheet out of balance",
                description=(
                    f"Total assets {total_assets} differ from liabilities plus equity "
                    f"{total_liabilities + total_equity} by {difference}."
                ),
                severity=InsightSeverity.WARNING,
                rule_id=BALANCE_SHEET_RULE,
                dedup_key=make_dedup_key(BALANCE_SHEET_RULE, str(difference), utcnow().date().isoformat()),
                data=error.details,
            ))

        return BalanceSheet(
            generated_at=utcnow(),
            assets=sections[AccountType.ASSET],
            liabilities=sections[AccountType.LIABILITY],
            equity=sections[AccountType.EQUITY],
            total_assets=total_assets,
            total_liabilities=total_liabilities,
            total_equity=total_equity,
            is_balanced=is_balanced,
            difference=difference,
            warning=warning
        )
