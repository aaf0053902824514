"""
General Ledger API Endpoints.

Entries are immutable: there is no update or delete route.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from cogniflow.app.db.session import get_db
from cogniflow.app.core.dependencies import get_current_user
from cogniflow.app.core.guards import require_role, FINANCE_WRITERS
from cogniflow.app.schemas.ledger import LedgerEntryCreate, LedgerEntryResponse, LedgerPostingResponse
from cogniflow.app.services.ledger import LedgerService
from cogniflow.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/ledger", tags=["General Ledger"])


@router.post("", response_model=LedgerPostingResponse, status_code=status.HTTP_201_CREATED)
async def post_ledger_entry(
    entry_data: LedgerEntryCreate,
    current_user: dict = Depends(require_role(FINANCE_WRITERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Post a debit or credit against an account.

    Returns the entry and the account balance after posting.
    """
    entry = await LedgerService.post_ledger_entry(
        db,
        account_name=entry_data.account_name,
        debit=entry_data.debit,
        credit=entry_data.credit,
        description=entry_data.description,
        entry_number=entry_data.entry_number,
        date=entry_data.date,
        transaction_id=entry_data.transaction_id,
        created_by=current_user["user_id"]
    )
    account = await LedgerService.get_account_by_id(db, entry.account_id)
    balance = account.balance

    await log_user_action(
        db, current_user, AuditAction.LEDGER_ENTRY_POSTED, "ledger_entry", entry.id,
        {
            "entry_number": entry.entry_number,
            "account_name": entry.account_name,
            "debit": str(entry.debit),
            "credit": str(entry.credit),
        }
    )
    return LedgerPostingResponse(
        entry=LedgerEntryResponse.model_validate(entry),
        account_balance=balance
    )


@router.get("", response_model=List[LedgerEntryResponse])
async def list_ledger_entries(
    account_name: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List entries, most recent first."""
    return await LedgerService.list_ledger_entries(db, account_name=account_name, limit=limit)


@router.get("/{entry_id}", response_model=LedgerEntryResponse)
async def get_ledger_entry(
    entry_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await LedgerService.get_ledger_entry(db, entry_id)
