"""
Ledger Service (Domain Logic).

Owns accounts and ledger entries. Posting an entry and adjusting the account
balance happen in one database transaction; the balance is changed with a
`balance = balance + delta` UPDATE so a stale in-memory Account can never
overwrite a newer value.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cogniflow.app.core.exceptions import (
    AccountNotFoundError,
    DuplicateNameError,
    DuplicateNumberError,
    NotFoundError,
    ValidationError,
)
from cogniflow.app.core.money import to_money, ZERO
from cogniflow.app.core.timeutils import to_naive_utc, utcnow
from cogniflow.app.models.account import Account
from cogniflow.app.models.finance_enums import AccountType, DEBIT_NORMAL_TYPES
from cogniflow.app.models.ledger_entry import LedgerEntry
from cogniflow.app.models.transaction import Transaction
from cogniflow.app.schemas.account import AccountUpdate
from cogniflow.app.services.numbering import JOURNAL_PREFIX, next_free_number

logger = logging.getLogger(__name__)


def balance_change(account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
    """
    Signed effect of an entry on an account balance.

    Debits increase asset/expense accounts; credits increase
    liability/equity/revenue accounts.
    """
    if account_type in DEBIT_NORMAL_TYPES:
        return debit - credit
    return credit - debit


class LedgerService:

    # --- Accounts ---

    @staticmethod
    async def create_account(
        db: AsyncSession,
        name: str,
        type: AccountType,
        opening_balance: Union[Decimal, int, str] = 0,
        currency: str = "USD",
        is_active: bool = True
    ) -> Account:
        """Create an account whose balance starts at opening_balance."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name must not be empty")

        existing = await db.execute(select(Account.id).where(Account.name == name))
        if existing.first():
            raise DuplicateNameError("Account", name)

        account = Account(
            name=name,
            type=type,
            balance=to_money(opening_balance),
            currency=currency.upper(),
            is_active=is_active
        )
        db.add(account)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise DuplicateNameError("Account", name)
        await db.refresh(account)

        logger.info("Account created: %s (%s) opening balance %s", account.name, account.type.value, account.balance)
        return account

    @staticmethod
    async def get_account(db: AsyncSession, name: str) -> Account:
        """Fetch an account by name."""
        result = await db.execute(select(Account).where(Account.name == name))
        account = result.scalar_one_or_none()
        if not account:
            raise AccountNotFoundError(name)
        return account

    @staticmethod
    async def get_account_by_id(db: AsyncSession, account_id: int) -> Account:
        account = await db.get(Account, account_id)
        if not account:
            raise NotFoundError("Account", account_id)
        return account

    @staticmethod
    async def list_accounts(db: AsyncSession, type: Optional[AccountType] = None) -> List[Account]:
        query = select(Account).order_by(Account.name)
        if type:
            query = query.where(Account.type == type)
        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def update_account(
        db: AsyncSession,
        account_id: int,
        changes: Union[AccountUpdate, Dict[str, Any]]
    ) -> Account:
        """Rename, change currency or (de)activate. Type and balance are fixed."""
        if isinstance(changes, dict):
            changes = AccountUpdate(**changes)
        data = changes.model_dump(exclude_unset=True, exclude_none=True)

        account = await LedgerService.get_account_by_id(db, account_id)

        new_name = data.get("name")
        renamed = bool(new_name) and new_name != account.name
        if renamed:
            clash = await db.execute(select(Account.id).where(Account.name == new_name))
            if clash.first():
                raise DuplicateNameError("Account", new_name)

        if "currency" in data:
            data["currency"] = data["currency"].upper()

        for field, value in data.items():
            setattr(account, field, value)

        if renamed:
            # entries keep a copy of the account name for display
            await db.execute(
                update(LedgerEntry)
                .where(LedgerEntry.account_id == account.id)
                .values(account_name=new_name)
            )

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise DuplicateNameError("Account", new_name)
        await db.refresh(account)
        return account

    # --- Ledger entries ---

    @staticmethod
    async def post_ledger_entry(
        db: AsyncSession,
        account_name: str,
        debit: Union[Decimal, int, str] = 0,
        credit: Union[Decimal, int, str] = 0,
        description: str = "",
        entry_number: Optional[str] = None,
        date: Optional[datetime] = None,
        transaction_id: Optional[int] = None,
        created_by: Optional[int] = None
    ) -> LedgerEntry:
        """
        Record a ledger entry and apply its effect on the account balance.

        Flow:
        1. Validate amounts (non-negative, exactly one side non-zero)
        2. Resolve the account by name (must exist and be active)
        3. Check the linked transaction and the entry number
        4. Insert the entry and bump the balance atomically, then commit

        Nothing is written when any step fails.
        """
        debit = to_money(debit)
        credit = to_money(credit)
        if debit < 0 or credit < 0:
            raise ValidationError("Debit and credit must not be negative", {"debit": debit, "credit": credit})
        if (debit > 0) == (credit > 0):
            raise ValidationError("Exactly one of debit or credit must be non-zero", {"debit": debit, "credit": credit})

        description = (description or "").strip()
        if not description:
            raise ValidationError("Description must not be empty")

        account = await LedgerService.get_account(db, account_name)
        if not account.is_active:
            raise ValidationError(f"Account '{account_name}' is inactive", {"account_name": account_name})

        if transaction_id is not None and not await db.get(Transaction, transaction_id):
            raise NotFoundError("Transaction", transaction_id)

        entry_date = to_naive_utc(date) or utcnow()
        if entry_number:
            taken = await db.execute(select(LedgerEntry.id).where(LedgerEntry.entry_number == entry_number))
            if taken.first():
                raise DuplicateNumberError("Ledger entry", entry_number)
        else:
            entry_number = await next_free_number(db, JOURNAL_PREFIX, LedgerEntry.entry_number, entry_date)

        delta = balance_change(account.type, debit, credit)
        entry = LedgerEntry(
            entry_number=entry_number,
            description=description,
            debit=debit,
            credit=credit,
            account_name=account.name,
            account_id=account.id,
            transaction_id=transaction_id,
            date=entry_date,
            created_by=created_by
        )
        db.add(entry)

        try:
            await db.flush()
            await db.execute(
                update(Account)
                .where(Account.id == account.id)
                .values(balance=Account.balance + delta)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning("Duplicate ledger entry number rejected: %s", entry_number)
            raise DuplicateNumberError("Ledger entry", entry_number)

        await db.refresh(entry)
        await db.refresh(account)

        logger.info(
            "Posted %s to %s: debit=%s credit=%s change=%s balance=%s",
            entry.entry_number, account.name, debit, credit, delta, account.balance
        )
        return entry

    @staticmethod
    async def get_ledger_entry(db: AsyncSession, entry_id: int) -> LedgerEntry:
        entry = await db.get(LedgerEntry, entry_id)
        if not entry:
            raise NotFoundError("Ledger entry", entry_id)
        return entry

    @staticmethod
    async def list_ledger_entries(
        db: AsyncSession,
        account_name: Optional[str] = None,
        limit: Optional[int] = None,
        account_id: Optional[int] = None
    ) -> List[LedgerEntry]:
        """
        Entries, most recent date first.

        An account filter matches on the account id, so entries posted before
        a rename are still listed under the current name.
        """
        query = select(LedgerEntry).order_by(LedgerEntry.date.desc(), LedgerEntry.id.desc())
        if account_id is not None:
            query = query.where(LedgerEntry.account_id == account_id)
        if account_name:
            query = query.where(
                LedgerEntry.account_id.in_(select(Account.id).where(Account.name == account_name))
            )
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def account_entry_total(db: AsyncSession, account: Account) -> Decimal:
        """Sum of signed entry effects for an account (opening balance excluded)."""
        entries = await LedgerService.list_ledger_entries(db, account_id=account.id)
        total = ZERO
        for entry in entries:
            total += balance_change(account.type, to_money(entry.debit), to_money(entry.credit))
        return total
