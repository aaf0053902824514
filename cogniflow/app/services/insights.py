"""
Insight Engine.

Heuristic rules over the transaction history that produce AiInsight records.
Nothing here is statistical: every rule is a flat threshold taken from an
InsightPolicy (see core/insight_config.py).

Rules come in two flavours:
- TransactionRule: judges one transaction against the transactions ordered
  before it by (date, id). The first transaction has no history.
- PeriodicRule: summarizes the history as of a point in time.

Every insight carries a dedup key, sha256(rule_id | entity | time bucket).
A key that is already stored suppresses the insert, so re-running the
analysis on unchanged data adds nothing.
"""

import hashlib
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cogniflow.app.core.exceptions import NotFoundError
from cogniflow.app.core.insight_config import InsightPolicy, load_policy
from cogniflow.app.core.money import ZERO, percent_change, to_money
from cogniflow.app.core.timeutils import add_months, month_start, quarter_bounds, utcnow
from cogniflow.app.models.ai_insight import AiInsight
from cogniflow.app.models.finance_enums import (
    InsightSeverity, InsightType, TransactionStatus, TransactionType
)
from cogniflow.app.models.transaction import Transaction

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1)


def make_dedup_key(rule_id: str, entity_ref: str, bucket: Any) -> str:
    raw = f"{rule_id}|{entity_ref}|{bucket}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def time_bucket(when: datetime, hours: int) -> int:
    """Index of the `hours`-wide window containing a naive UTC datetime."""
    return int((when - EPOCH).total_seconds() // (hours * 3600))


def _order_key(tx: Transaction):
    return (tx.date, tx.id or 0)


def _fmt(amount: Decimal) -> str:
    return f"${to_money(amount):,.2f}"


@dataclass
class InsightDraft:
    """An insight that has not been stored yet."""
    type: InsightType
    title: str
    description: str
    severity: InsightSeverity
    rule_id: str
    dedup_key: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_model(self) -> AiInsight:
        return AiInsight(
            type=self.type,
            title=self.title,
            description=self.description,
            severity=self.severity,
            data=self.data,
            rule_id=self.rule_id,
            dedup_key=self.dedup_key,
        )


# --- Anomaly rules ---

class TransactionRule:
    """Judges a single transaction against its prior history."""
    rule_id: str = ""

    def check(self, tx: Transaction, prior: Sequence[Transaction], policy: InsightPolicy) -> Optional[InsightDraft]:
        raise NotImplementedError

    def draft(self, tx: Transaction, title: str, description: str, data: Dict[str, Any]) -> InsightDraft:
        data = {"transaction_number": tx.transaction_number, "transaction_id": tx.id, **data}
        return InsightDraft(
            type=InsightType.ANOMALY,
            title=title,
            description=description,
            severity=InsightSeverity.WARNING,
            rule_id=self.rule_id,
            dedup_key=make_dedup_key(self.rule_id, tx.transaction_number, tx.date.date().isoformat()),
            data=data,
        )


class LargeAmountRule(TransactionRule):
    rule_id = "large_amount"

    def check(self, tx, prior, policy):
        if not prior:
            return None
        mean = to_money(sum((to_money(p.amount) for p in prior), ZERO) / len(prior))
        amount = to_money(tx.amount)
        if amount <= mean * policy.large_amount_multiplier:
            return None
        return self.draft(
            tx,
            "Unusually large transaction",
            f"Transaction {tx.transaction_number} of {_fmt(amount)} is significantly higher than "
            f"average ({_fmt(mean)} across {len(prior)} prior transactions).",
            {"amount": str(amount), "average": str(mean), "multiplier": str(policy.large_amount_multiplier)},
        )


class NovelCategoryRule(TransactionRule):
    rule_id = "novel_category"

    def check(self, tx, prior, policy):
        if not prior:
            return None
        if any(p.category == tx.category for p in prior):
            return None
        return self.draft(
            tx,
            "New spending category",
            f"Transaction {tx.transaction_number} uses category '{tx.category}', "
            f"which has not appeared before.",
            {"category": tx.category},
        )


class DuplicateRule(TransactionRule):
    rule_id = "duplicate"

    def check(self, tx, prior, policy):
        window = timedelta(hours=policy.duplicate_window_hours)
        amount = to_money(tx.amount)
        for other in prior:
            if other.transaction_number == tx.transaction_number:
                continue
            if (
                to_money(other.amount) == amount
                and other.category == tx.category
                and abs(tx.date - other.date) <= window
            ):
                return self.draft(
                    tx,
                    "Possible duplicate transaction",
                    f"Transaction {tx.transaction_number} matches {other.transaction_number} "
                    f"({_fmt(amount)}, '{tx.category}') within {policy.duplicate_window_hours} hours.",
                    {"duplicate_of": other.transaction_number, "amount": str(amount), "category": tx.category},
                )
        return None


# --- Periodic rules ---

def _active(transactions: Iterable[Transaction], tx_type: TransactionType) -> List[Transaction]:
    return [t for t in transactions if t.type == tx_type and t.status != TransactionStatus.CANCELLED]


class PeriodicRule:
    """Summarizes the whole history as of `now`."""
    rule_id: str = ""

    def evaluate(self, transactions: Sequence[Transaction], now: datetime, policy: InsightPolicy) -> Optional[InsightDraft]:
        raise NotImplementedError

    def key(self, entity_ref: str, now: datetime, policy: InsightPolicy) -> str:
        return make_dedup_key(self.rule_id, entity_ref, time_bucket(now, policy.dedup_window_hours))


class CashFlowPredictionRule(PeriodicRule):
    rule_id = "cash_flow_prediction"

    def evaluate(self, transactions, now, policy):
        start = add_months(month_start(now), -policy.trailing_months)
        window = [t for t in transactions if start <= t.date <= now]
        income = sum((to_money(t.amount) for t in _active(window, TransactionType.INCOME)), ZERO)
        expense = sum((to_money(t.amount) for t in _active(window, TransactionType.EXPENSE)), ZERO)
        if income == 0 and expense == 0:
            return None

        avg_income = to_money(income / policy.trailing_months)
        avg_expense = to_money(expense / policy.trailing_months)
        projection = to_money(policy.projection_months * (avg_income - avg_expense))
        baseline = to_money(projection * policy.last_year_factor)
        change = percent_change(projection, baseline)

        return InsightDraft(
            type=InsightType.PREDICTION,
            title="Cash flow forecast",
            description=(
                f"Projected net cash flow for the next {policy.projection_months} months is "
                f"{_fmt(projection)} ({change:+.2f}% vs. last year's {_fmt(baseline)}), based on "
                f"average monthly income of {_fmt(avg_income)} and expenses of {_fmt(avg_expense)}."
            ),
            severity=InsightSeverity.INFO,
            rule_id=self.rule_id,
            dedup_key=self.key("cash_flow", now, policy),
            data={
                "avg_monthly_income": str(avg_income),
                "avg_monthly_expense": str(avg_expense),
                "projection": str(projection),
                "baseline": str(baseline),
                "change_percent": change,
            },
        )


class CostSavingRule(PeriodicRule):
    rule_id = "cost_saving"

    def evaluate(self, transactions, now, policy):
        totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        for t in _active(transactions, TransactionType.EXPENSE):
            totals[t.category] += to_money(t.amount)
        if not totals:
            return None

        # ties resolve to the alphabetically first category
        category, total = max(sorted(totals.items()), key=lambda item: item[1])
        savings = to_money(total * policy.savings_rate)
        return InsightDraft(
            type=InsightType.RECOMMENDATION,
            title=f"Reduce {category} spending",
            description=(
                f"'{category}' is the largest expense category at {_fmt(total)}. "
                f"Trimming it by {policy.savings_rate * 100:.0f}% would save about {_fmt(savings)}."
            ),
            severity=InsightSeverity.INFO,
            rule_id=self.rule_id,
            dedup_key=self.key(category, now, policy),
            data={"category": category, "total": str(total), "potential_savings": str(savings)},
        )


class TaxDeductionRule(PeriodicRule):
    rule_id = "tax_deduction"

    def evaluate(self, transactions, now, policy):
        start, end, quarter = quarter_bounds(now)
        total = sum(
            (to_money(t.amount) for t in _active(transactions, TransactionType.EXPENSE) if start <= t.date < end),
            ZERO
        )
        if total == 0:
            return None

        deductible = to_money(total * policy.deductible_share)
        savings = to_money(deductible * policy.tax_rate)
        period = f"{now.year}-Q{quarter}"
        return InsightDraft(
            type=InsightType.OPTIMIZATION,
            title=f"Tax deductions for {period}",
            description=(
                f"Of {_fmt(total)} in expenses this quarter, roughly {_fmt(deductible)} may be deductible, "
                f"an estimated tax saving of {_fmt(savings)}."
            ),
            severity=InsightSeverity.INFO,
            rule_id=self.rule_id,
            dedup_key=self.key(period, now, policy),
            data={"period": period, "expenses": str(total), "deductible": str(deductible), "estimated_savings": str(savings)},
        )


DEFAULT_TRANSACTION_RULES = (LargeAmountRule(), NovelCategoryRule(), DuplicateRule())


# --- Persistence ---

async def insert_if_absent(db: AsyncSession, draft: InsightDraft) -> Optional[AiInsight]:
    """
    Insert one draft inside a savepoint.

    Returns None when the dedup key is already stored, e.g. by a concurrent
    run that committed after our pre-check.
    """
    insight = draft.to_model()
    try:
        async with db.begin_nested():
            db.add(insight)
    except IntegrityError:
        logger.info("Insight %s already stored, skipping", draft.dedup_key)
        return None
    return insight


async def store_insights(db: AsyncSession, drafts: Iterable[InsightDraft]) -> List[AiInsight]:
    """Insert drafts whose dedup key is not stored yet. Returns the new rows."""
    drafts = list(drafts)
    if not drafts:
        return []

    keys = {d.dedup_key for d in drafts}
    existing = await db.execute(select(AiInsight.dedup_key).where(AiInsight.dedup_key.in_(keys)))
    seen = set(existing.scalars().all())

    created = []
    for draft in drafts:
        if draft.dedup_key in seen:
            continue
        seen.add(draft.dedup_key)
        insight = await insert_if_absent(db, draft)
        if insight is not None:
            created.append(insight)

    if created:
        await db.commit()
        for insight in created:
            await db.refresh(insight)
        logger.info("Stored %d new insight(s)", len(created))
    return created


async def record_insight(db: AsyncSession, draft: InsightDraft) -> Optional[AiInsight]:
    created = await store_insights(db, [draft])
    return created[0] if created else None


class InsightEngine:
    """Runs the rules against the stored transactions."""

    def __init__(
        self,
        policy: Optional[InsightPolicy] = None,
        transaction_rules: Optional[Sequence[TransactionRule]] = None
    ):
        self.policy = policy or load_policy()
        self.transaction_rules = tuple(transaction_rules) if transaction_rules is not None else DEFAULT_TRANSACTION_RULES

    async def _history(self, db: AsyncSession) -> List[Transaction]:
        result = await db.execute(select(Transaction).order_by(Transaction.date, Transaction.id))
        return list(result.scalars().all())

    def anomaly_drafts(
        self,
        history: Sequence[Transaction],
        candidates: Optional[Sequence[Transaction]] = None
    ) -> List[InsightDraft]:
        ordered = sorted(history, key=_order_key)
        drafts = []
        for tx in (candidates if candidates is not None else ordered):
            key = _order_key(tx)
            prior = [p for p in ordered if _order_key(p) < key and p.transaction_number != tx.transaction_number]
            for rule in self.transaction_rules:
                draft = rule.check(tx, prior, self.policy)
                if draft:
                    drafts.append(draft)
        return drafts

    async def detect_anomalies(
        self,
        db: AsyncSession,
        transactions: Optional[Sequence[Transaction]] = None
    ) -> List[AiInsight]:
        """
        Check transactions (default: all) against the anomaly rules.

        Each triggered rule stores one anomaly insight.
        """
        history = await self._history(db)
        return await store_insights(db, self.anomaly_drafts(history, transactions))

    async def _periodic(self, db: AsyncSession, rule: PeriodicRule, now: Optional[datetime]) -> List[AiInsight]:
        history = await self._history(db)
        draft = rule.evaluate(history, now or utcnow(), self.policy)
        return await store_insights(db, [draft] if draft else [])

    async def generate_cash_flow_prediction(self, db: AsyncSession, now: Optional[datetime] = None) -> List[AiInsight]:
        return await self._periodic(db, CashFlowPredictionRule(), now)

    async def identify_cost_saving_opportunities(self, db: AsyncSession, now: Optional[datetime] = None) -> List[AiInsight]:
        return await self._periodic(db, CostSavingRule(), now)

    async def identify_tax_deductions(self, db: AsyncSession, now: Optional[datetime] = None) -> List[AiInsight]:
        return await self._periodic(db, TaxDeductionRule(), now)

    async def run_analysis(self, db: AsyncSession, now: Optional[datetime] = None) -> List[AiInsight]:
        """Run every rule in one pass; returns only the newly stored insights."""
        now = now or utcnow()
        history = await self._history(db)
        drafts = self.anomaly_drafts(history)
        for rule in (CashFlowPredictionRule(), CostSavingRule(), TaxDeductionRule()):
            draft = rule.evaluate(history, now, self.policy)
            if draft:
                drafts.append(draft)
        created = await store_insights(db, drafts)
        logger.info("Analysis over %d transactions produced %d new insight(s)", len(history), len(created))
        return created


async def list_insights(
    db: AsyncSession,
    type: Optional[InsightType] = None,
    is_read: Optional[bool] = None,
    limit: Optional[int] = None
) -> List[AiInsight]:
    """Insights, newest first."""
    query = select(AiInsight).order_by(AiInsight.created_at.desc(), AiInsight.id.desc())
    if type:
        query = query.where(AiInsight.type == type)
    if is_read is not None:
        query = query.where(AiInsight.is_read == is_read)
    if limit:
        query = query.limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


async def mark_insight_read(db: AsyncSession, insight_id: int) -> AiInsight:
    insight = await db.get(AiInsight, insight_id)
    if not insight:
        raise NotFoundError("Insight", insight_id)
    insight.is_read = True
    await db.commit()
    await db.refresh(insight)
    return insight
