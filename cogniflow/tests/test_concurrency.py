"""
Concurrency Tests.

Interleaved postings never lose updates, and sessions that lose a race to
create a counter row or an insight carry on instead of failing.
"""

import pytest
from datetime import datetime
from decimal import Decimal
from sqlalchemy import select

from cogniflow.app.models.ai_insight import AiInsight
from cogniflow.app.models.finance_enums import AccountType, InsightSeverity, InsightType
from cogniflow.app.models.number_sequence import NumberSequence
from cogniflow.app.services.insights import InsightDraft, insert_if_absent, make_dedup_key, store_insights
from cogniflow.app.services.ledger import LedgerService
from cogniflow.app.services.numbering import claim_counter, next_number
from cogniflow.tests.helpers import TestingSessionLocal


@pytest.mark.asyncio
async def test_stale_session_does_not_overwrite_balance(db_session):
    """A session holding an old Account snapshot still applies its delta on top of newer writes."""
    await LedgerService.create_account(db_session, "Cash", AccountType.ASSET, opening_balance="100")

    async with TestingSessionLocal() as session_a, TestingSessionLocal() as session_b:
        stale = await LedgerService.get_account(session_a, "Cash")
        assert stale.balance == Decimal("100.00")

        await LedgerService.post_ledger_entry(session_b, "Cash", debit="40", description="b")

        # session_a still sees 100 in memory; the posting must build on 140
        await LedgerService.post_ledger_entry(session_a, "Cash", credit="15", description="a")

    final = await LedgerService.get_account_by_id(db_session, stale.id)
    await db_session.refresh(final)
    assert final.balance == Decimal("125.00")


@pytest.mark.asyncio
async def test_number_counter_never_repeats(db_session):
    numbers = [await next_number(db_session, "TRX") for _ in range(5)]
    await db_session.commit()
    assert len(set(numbers)) == 5
    assert [n[-4:] for n in numbers] == ["0001", "0002", "0003", "0004", "0005"]


@pytest.mark.asyncio
async def test_counter_created_by_another_session(db_session):
    """Losing the race to create a month's counter row continues from the winner's value."""
    async with TestingSessionLocal() as other:
        other.add(NumberSequence(prefix="TRX", period="202601", last_value=3))
        await other.commit()

    assert await claim_counter(db_session, "TRX", "202601") is False
    assert await next_number(db_session, "TRX", datetime(2026, 1, 15)) == "TRX-202601-0004"
    await db_session.commit()

    rows = (await db_session.execute(select(NumberSequence))).scalars().all()
    assert [(r.prefix, r.period, r.last_value) for r in rows] == [("TRX", "202601", 4)]


@pytest.mark.asyncio
async def test_insight_stored_concurrently_is_skipped(db_session):
    draft = InsightDraft(
        type=InsightType.ANOMALY,
        title="Duplicate",
        description="Same amount twice",
        severity=InsightSeverity.WARNING,
        rule_id="duplicate",
        dedup_key=make_dedup_key("duplicate", "TRX-202601-0002", "2026-01-02"),
    )
    async with TestingSessionLocal() as other:
        other.add(draft.to_model())
        await other.commit()

    assert await insert_if_absent(db_session, draft) is None
    # the session is still usable after the rejected insert
    assert await store_insights(db_session, [draft]) == []
    assert len((await db_session.execute(select(AiInsight))).scalars().all()) == 1
