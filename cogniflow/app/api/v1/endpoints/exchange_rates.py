"""
Exchange Rate API Endpoints.

Quotes are stored and listed; no amount is ever converted with them.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from cogniflow.app.db.session import get_db
from cogniflow.app.core.dependencies import get_current_user
from cogniflow.app.core.guards import require_role, FINANCE_WRITERS
from cogniflow.app.core.exceptions import ValidationError
from cogniflow.app.core.timeutils import to_naive_utc, utcnow
from cogniflow.app.models.exchange_rate import ExchangeRate
from cogniflow.app.schemas.exchange_rate import ExchangeRateCreate, ExchangeRateResponse
from cogniflow.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/exchange-rates", tags=["Exchange Rates"])


@router.post("", response_model=ExchangeRateResponse, status_code=status.HTTP_201_CREATED)
async def create_exchange_rate(
    rate_data: ExchangeRateCreate,
    current_user: dict = Depends(require_role(FINANCE_WRITERS)),
    db: AsyncSession = Depends(get_db)
):
    if rate_data.base_currency == rate_data.target_currency:
        raise ValidationError("Base and target currency must differ")

    rate = ExchangeRate(
        base_currency=rate_data.base_currency,
        target_currency=rate_data.target_currency,
        rate=rate_data.rate,
        date=to_naive_utc(rate_data.date) or utcnow()
    )
    db.add(rate)
    await db.commit()
    await db.refresh(rate)

    await log_user_action(
        db, current_user, AuditAction.EXCHANGE_RATE_CREATED, "exchange_rate", rate.id,
        {"pair": f"{rate.base_currency}/{rate.target_currency}", "rate": str(rate.rate)}
    )
    return rate


@router.get("", response_model=List[ExchangeRateResponse])
async def list_exchange_rates(
    base_currency: Optional[str] = None,
    target_currency: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Latest quotes first."""
    query = select(ExchangeRate).order_by(ExchangeRate.date.desc(), ExchangeRate.id.desc())
    if base_currency:
        query = query.where(ExchangeRate.base_currency == base_currency.upper())
    if target_currency:
        query = query.where(ExchangeRate.target_currency == target_currency.upper())
    result = await db.execute(query.limit(limit))
    return result.scalars().all()
