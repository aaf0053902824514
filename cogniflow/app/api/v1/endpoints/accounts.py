"""
Account API Endpoints.

Account creation is admin-only; edits are open to finance writers.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from cogniflow.app.db.session import get_db
from cogniflow.app.core.dependencies import get_current_user
from cogniflow.app.core.guards import require_role, ADMIN_ONLY, FINANCE_WRITERS
from cogniflow.app.models.finance_enums import AccountType
from cogniflow.app.schemas.account import AccountCreate, AccountUpdate, AccountResponse
from cogniflow.app.services.ledger import LedgerService
from cogniflow.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    account_data: AccountCreate,
    current_user: dict = Depends(require_role(ADMIN_ONLY)),
    db: AsyncSession = Depends(get_db)
):
    """Create a ledger account with an opening balance."""
    account = await LedgerService.create_account(
        db,
        name=account_data.name,
        type=account_data.type,
        opening_balance=account_data.opening_balance,
        currency=account_data.currency,
        is_active=account_data.is_active
    )

    await log_user_action(
        db, current_user, AuditAction.ACCOUNT_CREATED, "account", account.id,
        {"name": account.name, "type": account.type.value, "opening_balance": str(account.balance)}
    )
    return account


@router.get("", response_model=List[AccountResponse])
async def list_accounts(
    type: Optional[AccountType] = None,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List accounts ordered by name, optionally filtered by type."""
    return await LedgerService.list_accounts(db, type=type)


@router.get("/by-name/{name}", response_model=AccountResponse)
async def get_account_by_name(
    name: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await LedgerService.get_account(db, name)


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await LedgerService.get_account_by_id(db, account_id)


@router.patch("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: int,
    changes: AccountUpdate,
    current_user: dict = Depends(require_role(FINANCE_WRITERS)),
    db: AsyncSession = Depends(get_db)
):
    """Rename, change currency or (de)activate an account."""
    account = await LedgerService.update_account(db, account_id, changes)

    await log_user_action(
        db, current_user, AuditAction.ACCOUNT_UPDATED, "account", account.id,
        changes.model_dump(exclude_unset=True)
    )
    return account
