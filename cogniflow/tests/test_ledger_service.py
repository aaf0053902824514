"""
Ledger Service Tests.

Balance invariant, atomic posting and uniqueness of names/numbers.
"""

import itertools
import pytest
from decimal import Decimal
from sqlalchemy import select, func

from cogniflow.app.core.exceptions import (
    AccountNotFoundError, DuplicateNameError, DuplicateNumberError, NotFoundError, ValidationError
)
from cogniflow.app.models.finance_enums import AccountType
from cogniflow.app.models.ledger_entry import LedgerEntry
from cogniflow.app.services.ledger import LedgerService, balance_change


async def entry_count(db) -> int:
    return (await db.execute(select(func.count(LedgerEntry.id)))).scalar()


def test_sign_rule():
    ten, zero = Decimal("10.00"), Decimal("0.00")
    assert balance_change(AccountType.ASSET, ten, zero) == ten
    assert balance_change(AccountType.EXPENSE, zero, ten) == -ten
    assert balance_change(AccountType.LIABILITY, zero, ten) == ten
    assert balance_change(AccountType.EQUITY, ten, zero) == -ten
    assert balance_change(AccountType.REVENUE, zero, ten) == ten


@pytest.mark.asyncio
async def test_create_account_with_opening_balance(db_session):
    account = await LedgerService.create_account(db_session, "Cash", AccountType.ASSET, opening_balance="250.5")
    assert account.id is not None
    assert account.balance == Decimal("250.50")
    assert account.currency == "USD"
    assert account.is_active is True


@pytest.mark.asyncio
async def test_duplicate_account_name(db_session):
    await LedgerService.create_account(db_session, "Cash", AccountType.ASSET, opening_balance=100)

    with pytest.raises(DuplicateNameError):
        await LedgerService.create_account(db_session, "Cash", AccountType.LIABILITY)

    accounts = await LedgerService.list_accounts(db_session)
    assert [(a.name, a.type, a.balance) for a in accounts] == [("Cash", AccountType.ASSET, Decimal("100.00"))]


@pytest.mark.asyncio
@pytest.mark.parametrize("account_type", [AccountType.ASSET, AccountType.LIABILITY, AccountType.REVENUE])
async def test_balance_equals_sum_of_signed_effects(db_session, account_type):
    await LedgerService.create_account(db_session, "Book", account_type, opening_balance="1000")
    postings = [("150.25", "0"), ("0", "40.10"), ("9.99", "0"), ("0", "500")]

    expected = Decimal("1000.00")
    for debit, credit in postings:
        await LedgerService.post_ledger_entry(db_session, "Book", debit=debit, credit=credit, description="move")
        expected += balance_change(account_type, Decimal(debit), Decimal(credit))

    account = await LedgerService.get_account(db_session, "Book")
    assert account.balance == expected
    assert account.balance == Decimal("1000.00") + await LedgerService.account_entry_total(db_session, account)


@pytest.mark.asyncio
async def test_posting_order_does_not_matter(db_session):
    postings = [("100", "0"), ("0", "30"), ("12.50", "0")]
    balances = set()

    for i, order in enumerate(itertools.permutations(postings)):
        name = f"Perm {i}"
        await LedgerService.create_account(db_session, name, AccountType.ASSET)
        for debit, credit in order:
            await LedgerService.post_ledger_entry(db_session, name, debit=debit, credit=credit, description="perm")
        balances.add((await LedgerService.get_account(db_session, name)).balance)

    assert balances == {Decimal("82.50")}


@pytest.mark.asyncio
async def test_missing_account_rejects_whole_posting(db_session):
    with pytest.raises(AccountNotFoundError) as exc_info:
        await LedgerService.post_ledger_entry(db_session, "Nowhere", debit="10", description="lost")

    assert isinstance(exc_info.value, NotFoundError)
    assert exc_info.value.status_code == 404
    assert await entry_count(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("debit,credit", [("0", "0"), ("10", "5"), ("-5", "0"), ("0", "-1")])
async def test_invalid_amounts(db_session, debit, credit):
    await LedgerService.create_account(db_session, "Cash", AccountType.ASSET, opening_balance=50)

    with pytest.raises(ValidationError):
        await LedgerService.post_ledger_entry(db_session, "Cash", debit=debit, credit=credit, description="bad")

    assert (await LedgerService.get_account(db_session, "Cash")).balance == Decimal("50.00")
    assert await entry_count(db_session) == 0


@pytest.mark.asyncio
async def test_inactive_account_rejected(db_session):
    account = await LedgerService.create_account(db_session, "Old", AccountType.ASSET)
    await LedgerService.update_account(db_session, account.id, {"is_active": False})

    with pytest.raises(ValidationError):
        await LedgerService.post_ledger_entry(db_session, "Old", debit="1", description="late")


@pytest.mark.asyncio
async def test_unknown_transaction_reference(db_session):
    await LedgerService.create_account(db_session, "Cash", AccountType.ASSET)

    with pytest.raises(NotFoundError):
        await LedgerService.post_ledger_entry(db_session, "Cash", debit="1", description="x", transaction_id=999)
    assert await entry_count(db_session) == 0


@pytest.mark.asyncio
async def test_generated_entry_numbers_are_sequential(db_session):
    await LedgerService.create_account(db_session, "Cash", AccountType.ASSET)
    first = await LedgerService.post_ledger_entry(db_session, "Cash", debit="1", description="a")
    second = await LedgerService.post_ledger_entry(db_session, "Cash", debit="1", description="b")

    assert first.entry_number.startswith("JE-")
    assert first.entry_number.endswith("-0001")
    assert second.entry_number.endswith("-0002")


@pytest.mark.asyncio
async def test_duplicate_entry_number_leaves_state_unchanged(db_session):
    await LedgerService.create_account(db_session, "Cash", AccountType.ASSET)
    await LedgerService.post_ledger_entry(db_session, "Cash", debit="10", description="a", entry_number="JE-MANUAL-1")

    with pytest.raises(DuplicateNumberError):
        await LedgerService.post_ledger_entry(db_session, "Cash", debit="99", description="b", entry_number="JE-MANUAL-1")

    assert (await LedgerService.get_account(db_session, "Cash")).balance == Decimal("10.00")
    assert await entry_count(db_session) == 1


@pytest.mark.asyncio
async def test_update_account_rename_clash(db_session):
    await LedgerService.create_account(db_session, "Cash", AccountType.ASSET)
    bank = await LedgerService.create_account(db_session, "Bank", AccountType.ASSET)

    with pytest.raises(DuplicateNameError):
        await LedgerService.update_account(db_session, bank.id, {"name": "Cash"})

    renamed = await LedgerService.update_account(db_session, bank.id, {"name": "Main Bank", "currency": "eur"})
    assert renamed.name == "Main Bank"
    assert renamed.currency == "EUR"


@pytest.mark.asyncio
async def test_reads_are_idempotent(db_session):
    await LedgerService.create_account(db_session, "Cash", AccountType.ASSET)
    await LedgerService.create_account(db_session, "Loan", AccountType.LIABILITY)
    await LedgerService.post_ledger_entry(db_session, "Cash", debit="5", description="a")

    def snapshot(accounts):
        return [(a.id, a.name, a.balance) for a in accounts]

    assert snapshot(await LedgerService.list_accounts(db_session)) == snapshot(await LedgerService.list_accounts(db_session))
    assert [a.name for a in await LedgerService.list_accounts(db_session, type=AccountType.LIABILITY)] == ["Loan"]

    first = await LedgerService.list_ledger_entries(db_session, account_name="Cash")
    second = await LedgerService.list_ledger_entries(db_session, account_name="Cash")
    assert [e.entry_number for e in first] == [e.entry_number for e in second]


@pytest.mark.asyncio
async def test_rename_keeps_entry_history(db_session):
    cash = await LedgerService.create_account(db_session, "Cash", AccountType.ASSET)
    await LedgerService.post_ledger_entry(db_session, "Cash", debit="100", description="before rename")

    await LedgerService.update_account(db_session, cash.id, {"name": "Main Cash"})
    await LedgerService.post_ledger_entry(db_session, "Main Cash", debit="5", description="after rename")

    entries = await LedgerService.list_ledger_entries(db_session, account_name="Main Cash")
    assert [e.description for e in entries] == ["after rename", "before rename"]
    assert {e.account_name for e in entries} == {"Main Cash"}
    assert await LedgerService.list_ledger_entries(db_session, account_name="Cash") == []

    account = await LedgerService.get_account(db_session, "Main Cash")
    assert await LedgerService.account_entry_total(db_session, account) == account.balance == Decimal("105.00")
