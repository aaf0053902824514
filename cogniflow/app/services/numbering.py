"""
Business number generation.

Numbers look like TRX-202601-0001: prefix, issue year-month and a counter
that restarts each month. Counters live in number_sequences and are bumped
with an atomic UPDATE so two sessions never read the same value.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cogniflow.app.core.timeutils import utcnow
from cogniflow.app.models.number_sequence import NumberSequence

logger = logging.getLogger(__name__)

TRANSACTION_PREFIX = "TRX"
RECEIVABLE_PREFIX = "INV"
PAYABLE_PREFIX = "BILL"
JOURNAL_PREFIX = "JE"


def format_number(prefix: str, period: str, value: int) -> str:
    return f"{prefix}-{period}-{value:04d}"


async def claim_counter(db: AsyncSession, prefix: str, period: str) -> bool:
    """
    Create the counter row for (prefix, period) starting at 1.

    Returns False when another session created it first; only the savepoint
    is rolled back, so the caller's transaction stays usable.
    """
    try:
        async with db.begin_nested():
            db.add(NumberSequence(prefix=prefix, period=period, last_value=1))
    except IntegrityError:
        logger.info("Counter %s-%s created concurrently", prefix, period)
        return False
    return True


async def next_number(db: AsyncSession, prefix: str, when: Optional[datetime] = None) -> str:
    """
    Reserve the next number for prefix in the month of `when` (default now).
    
    Runs inside the caller's transaction: if the caller rolls back, the
    counter increment goes with it.
    """
    period = (when or utcnow()).strftime("%Y%m")
    bump = (
        update(NumberSequence)
        .where(NumberSequence.prefix == prefix, NumberSequence.period == period)
        .values(last_value=NumberSequence.last_value + 1)
        .execution_options(synchronize_session=False)
    )
    
    result = await db.execute(bump)
    if result.rowcount == 0:
        if await claim_counter(db, prefix, period):
            return format_number(prefix, period, 1)
        # lost the race to create the row; it exists now
        await db.execute(bump)
    
    value = (await db.execute(
        select(NumberSequence.last_value).where(
            NumberSequence.prefix == prefix,
            NumberSequence.period == period
        )
    )).scalar_one()
    return format_number(prefix, period, value)


async def next_free_number(db: AsyncSession, prefix: str, column, when: Optional[datetime] = None) -> str:
    """
    next_number, skipping values already taken by caller-supplied numbers.
    
    `column` is the unique number column to check (e.g. Invoice.invoice_number).
    """
    while True:
        number = await next_number(db, prefix, when)
        taken = (await db.execute(select(column).where(column == number))).first()
        if not taken:
            return number
        logger.info("Generated number %s already in use, skipping", number)
