"""
Transaction API Endpoints.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from cogniflow.app.db.session import get_db
from cogniflow.app.core.dependencies import get_current_user
from cogniflow.app.core.guards import require_role, FINANCE_WRITERS
from cogniflow.app.models.finance_enums import TransactionType, TransactionStatus
from cogniflow.app.schemas.transaction import (
    TransactionCreate, TransactionUpdate, TransactionResponse, TransactionListResponse
)
from cogniflow.app.services.recorder import TransactionService
from cogniflow.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    current_user: dict = Depends(require_role(FINANCE_WRITERS)),
    db: AsyncSession = Depends(get_db)
):
    """Record a transaction. A TRX number is generated when none is given."""
    transaction = await TransactionService.create_transaction(db, transaction_data, current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.TRANSACTION_CREATED, "transaction", transaction.id,
        {"transaction_number": transaction.transaction_number, "amount": str(transaction.amount)}
    )
    return transaction


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    type: Optional[TransactionType] = None,
    status: Optional[TransactionStatus] = None,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List transactions, most recent first."""
    transactions = await TransactionService.list_transactions(db, type=type, status=status, limit=limit)
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        total=len(transactions)
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await TransactionService.get_transaction(db, transaction_id)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: int,
    changes: TransactionUpdate,
    current_user: dict = Depends(require_role(FINANCE_WRITERS)),
    db: AsyncSession = Depends(get_db)
):
    """Partially update a transaction. The number cannot change."""
    transaction = await TransactionService.update_transaction(db, transaction_id, changes)

    await log_user_action(
        db, current_user, AuditAction.TRANSACTION_UPDATED, "transaction", transaction.id,
        changes.model_dump(mode="json", exclude_unset=True)
    )
    return transaction
