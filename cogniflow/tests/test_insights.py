"""
Insight Engine Tests.

Anomaly rules, periodic rules and deduplication across runs.
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from cogniflow.app.core.insight_config import InsightPolicy
from cogniflow.app.models.finance_enums import InsightSeverity, InsightType
from cogniflow.app.services.insights import (
    InsightEngine, LargeAmountRule, list_insights, mark_insight_read
)
from cogniflow.app.services.recorder import TransactionService

NOW = datetime(2026, 5, 15, 12, 0)


async def record(db, amount, date, category="Office", tx_type="expense"):
    return await TransactionService.create_transaction(db, {
        "description": f"{category} {amount}",
        "amount": amount,
        "type": tx_type,
        "category": category,
        "status": "completed",
        "date": date,
    })


@pytest.mark.asyncio
async def test_large_amount_flags_exactly_one(db_session):
    start = datetime(2026, 3, 1)
    for offset, amount in [(0, "1000"), (2, "800"), (4, "1200")]:
        await record(db_session, amount, start + timedelta(days=offset))
    big = await record(db_session, "5000", start + timedelta(days=6))

    created = await InsightEngine(InsightPolicy()).detect_anomalies(db_session)

    assert len(created) == 1
    insight = created[0]
    assert insight.type == InsightType.ANOMALY
    assert insight.rule_id == "large_amount"
    assert insight.severity == InsightSeverity.WARNING
    assert big.transaction_number in insight.description
    assert "significantly higher than average" in insight.description
    assert insight.data["average"] == "1000.00"


@pytest.mark.asyncio
async def test_first_transaction_triggers_nothing(db_session):
    await record(db_session, "99999", datetime(2026, 3, 1), category="Exotic")
    assert await InsightEngine(InsightPolicy()).detect_anomalies(db_session) == []


@pytest.mark.asyncio
async def test_duplicate_within_window(db_session):
    first = await record(db_session, "500", datetime(2026, 3, 1, 9, 0), category="Travel")
    second = await record(db_session, "500", datetime(2026, 3, 1, 12, 0), category="Travel")

    created = await InsightEngine(InsightPolicy()).detect_anomalies(db_session)

    assert [i.rule_id for i in created] == ["duplicate"]
    assert created[0].data["transaction_number"] == second.transaction_number
    assert created[0].data["duplicate_of"] == first.transaction_number


@pytest.mark.asyncio
async def test_no_duplicate_ten_days_apart(db_session):
    await record(db_session, "500", datetime(2026, 3, 1, 9, 0), category="Travel")
    await record(db_session, "500", datetime(2026, 3, 11, 9, 0), category="Travel")

    assert await InsightEngine(InsightPolicy()).detect_anomalies(db_session) == []


@pytest.mark.asyncio
async def test_novel_category(db_session):
    await record(db_session, "100", datetime(2026, 3, 1), category="Office")
    new = await record(db_session, "120", datetime(2026, 3, 5), category="Marketing")

    created = await InsightEngine(InsightPolicy()).detect_anomalies(db_session)

    assert [i.rule_id for i in created] == ["novel_category"]
    assert new.transaction_number in created[0].description


@pytest.mark.asyncio
async def test_candidates_are_judged_against_full_history(db_session):
    for day in range(1, 4):
        await record(db_session, "100", datetime(2026, 3, day * 3))
    big = await record(db_session, "1000", datetime(2026, 3, 20))

    created = await InsightEngine(InsightPolicy()).detect_anomalies(db_session, transactions=[big])
    assert [i.rule_id for i in created] == ["large_amount"]


@pytest.mark.asyncio
async def test_policy_threshold_is_injectable(db_session):
    await record(db_session, "100", datetime(2026, 3, 1))
    await record(db_session, "200", datetime(2026, 3, 5))

    assert await InsightEngine(InsightPolicy()).detect_anomalies(db_session) == []

    strict = InsightEngine(InsightPolicy(large_amount_multiplier=Decimal("1.5")))
    assert [i.rule_id for i in await strict.detect_anomalies(db_session)] == ["large_amount"]


@pytest.mark.asyncio
async def test_rules_are_pluggable(db_session):
    await record(db_session, "100", datetime(2026, 3, 1), category="Office")
    await record(db_session, "100", datetime(2026, 3, 1, 1), category="Travel")
    await record(db_session, "900", datetime(2026, 3, 1, 2), category="Travel")

    engine = InsightEngine(InsightPolicy(), transaction_rules=[LargeAmountRule()])
    assert {i.rule_id for i in await engine.detect_anomalies(db_session)} == {"large_amount"}


async def seed_history(db):
    await record(db, "6000", datetime(2026, 2, 1), category="Sales", tx_type="income")
    await record(db, "1000", datetime(2026, 1, 10), category="Travel")
    await record(db, "2000", datetime(2026, 4, 10), category="Rent")


@pytest.mark.asyncio
async def test_cash_flow_prediction(db_session):
    await seed_history(db_session)

    created = await InsightEngine(InsightPolicy()).generate_cash_flow_prediction(db_session, now=NOW)

    assert len(created) == 1
    data = created[0].data
    assert created[0].type == InsightType.PREDICTION
    assert data["avg_monthly_income"] == "1000.00"
    assert data["avg_monthly_expense"] == "500.00"
    assert data["projection"] == "1500.00"
    assert data["baseline"] == "1380.00"
    assert data["change_percent"] == pytest.approx(8.7)


@pytest.mark.asyncio
async def test_cost_saving_targets_top_category(db_session):
    await seed_history(db_session)

    created = await InsightEngine(InsightPolicy()).identify_cost_saving_opportunities(db_session, now=NOW)

    assert len(created) == 1
    assert created[0].type == InsightType.RECOMMENDATION
    assert created[0].data["category"] == "Rent"
    assert created[0].data["potential_savings"] == "240.00"


@pytest.mark.asyncio
async def test_tax_deduction_uses_current_quarter(db_session):
    await seed_history(db_session)

    created = await InsightEngine(InsightPolicy()).identify_tax_deductions(db_session, now=NOW)

    assert len(created) == 1
    data = created[0].data
    assert created[0].type == InsightType.OPTIMIZATION
    assert data["period"] == "2026-Q2"
    assert data["expenses"] == "2000.00"
    assert data["deductible"] == "600.00"
    assert data["estimated_savings"] == "150.00"


@pytest.mark.asyncio
async def test_periodic_rules_skip_without_data(db_session):
    engine = InsightEngine(InsightPolicy())
    assert await engine.generate_cash_flow_prediction(db_session, now=NOW) == []
    assert await engine.identify_cost_saving_opportunities(db_session, now=NOW) == []
    assert await engine.identify_tax_deductions(db_session, now=NOW) == []


@pytest.mark.asyncio
async def test_rerun_on_unchanged_data_adds_nothing(db_session):
    await seed_history(db_session)
    await record(db_session, "500", datetime(2026, 4, 11, 8), category="Travel")
    await record(db_session, "500", datetime(2026, 4, 11, 9), category="Travel")
    engine = InsightEngine(InsightPolicy())

    first = await engine.run_analysis(db_session, now=NOW)
    assert {i.rule_id for i in first} >= {"duplicate", "cash_flow_prediction", "cost_saving", "tax_deduction"}

    assert await engine.run_analysis(db_session, now=NOW) == []
    assert len(await list_insights(db_session)) == len(first)


@pytest.mark.asyncio
async def test_list_and_mark_read(db_session):
    await seed_history(db_session)
    await InsightEngine(InsightPolicy()).run_analysis(db_session, now=NOW)

    unread = await list_insights(db_session, is_read=False)
    assert unread

    read = await mark_insight_read(db_session, unread[0].id)
    assert read.is_read is True
    assert len(await list_insights(db_session, is_read=True)) == 1
    assert len(await list_insights(db_session, type=InsightType.PREDICTION)) == 1
