"""
Transaction and Invoice Recorder Tests.
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from cogniflow.app.core.exceptions import DuplicateNumberError, NotFoundError, ValidationError
from cogniflow.app.core.timeutils import utcnow
from cogniflow.app.models.finance_enums import (
    InvoiceStatus, InvoiceType, TransactionStatus, TransactionType
)
from cogniflow.app.schemas.invoice import InvoiceResponse
from cogniflow.app.services.recorder import InvoiceService, TransactionService


def tx_data(**overrides):
    data = {
        "description": "Office chairs",
        "amount": "320.00",
        "type": "expense",
        "category": "Office",
        "date": datetime(2026, 3, 10, 9, 0),
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_create_transaction_assigns_number(db_session):
    tx = await TransactionService.create_transaction(db_session, tx_data(), created_by=7)

    assert tx.id is not None
    assert tx.transaction_number == "TRX-202603-0001"
    assert tx.amount == Decimal("320.00")
    assert tx.status == TransactionStatus.PENDING
    assert tx.created_by == 7
    assert tx.created_at is not None

    second = await TransactionService.create_transaction(db_session, tx_data(description="Desk"))
    assert second.transaction_number == "TRX-202603-0002"


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"description": "   "},
    {"category": ""},
    {"amount": "abc"},
    {"amount": "0"},
    {"amount": "-10", "type": "income"},
    {"type": "gift"},
])
async def test_create_transaction_validation(db_session, overrides):
    with pytest.raises(ValidationError) as exc_info:
        await TransactionService.create_transaction(db_session, tx_data(**overrides))
    assert exc_info.value.status_code == 400
    assert await TransactionService.list_transactions(db_session) == []


@pytest.mark.asyncio
async def test_negative_adjustment_is_allowed(db_session):
    tx = await TransactionService.create_transaction(
        db_session, tx_data(type="adjustment", amount="-42.10", category="Correction")
    )
    assert tx.amount == Decimal("-42.10")


@pytest.mark.asyncio
async def test_duplicate_transaction_number(db_session):
    await TransactionService.create_transaction(db_session, tx_data(transaction_number="TRX-CUSTOM"))

    with pytest.raises(DuplicateNumberError):
        await TransactionService.create_transaction(
            db_session, tx_data(transaction_number="TRX-CUSTOM", amount="999")
        )

    transactions = await TransactionService.list_transactions(db_session)
    assert [(t.transaction_number, t.amount) for t in transactions] == [("TRX-CUSTOM", Decimal("320.00"))]


@pytest.mark.asyncio
async def test_generated_number_skips_taken_value(db_session):
    await TransactionService.create_transaction(db_session, tx_data(transaction_number="TRX-202603-0001"))
    tx = await TransactionService.create_transaction(db_session, tx_data())
    assert tx.transaction_number == "TRX-202603-0002"


@pytest.mark.asyncio
async def test_update_transaction(db_session):
    tx = await TransactionService.create_transaction(db_session, tx_data())

    updated = await TransactionService.update_transaction(
        db_session, tx.id, {"status": "completed", "description": "Ergonomic chairs"}
    )
    assert updated.status == TransactionStatus.COMPLETED
    assert updated.description == "Ergonomic chairs"
    assert updated.amount == Decimal("320.00")
    assert updated.transaction_number == tx.transaction_number

    with pytest.raises(ValidationError):
        await TransactionService.update_transaction(db_session, tx.id, {"transaction_number": "X"})
    with pytest.raises(ValidationError):
        await TransactionService.update_transaction(db_session, tx.id, {"amount": "-5"})
    with pytest.raises(NotFoundError):
        await TransactionService.update_transaction(db_session, 404, {"status": "completed"})


@pytest.mark.asyncio
async def test_list_transactions_filters_and_order(db_session):
    base = datetime(2026, 1, 1)
    for day, tx_type in [(3, "income"), (1, "expense"), (2, "income")]:
        await TransactionService.create_transaction(
            db_session, tx_data(type=tx_type, date=base + timedelta(days=day), category="Sales")
        )

    all_tx = await TransactionService.list_transactions(db_session)
    assert [t.date.day for t in all_tx] == [4, 3, 2]

    income = await TransactionService.list_transactions(db_session, type=TransactionType.INCOME)
    assert len(income) == 2

    assert len(await TransactionService.list_transactions(db_session, limit=1)) == 1
    assert await TransactionService.list_transactions(db_session, status=TransactionStatus.CANCELLED) == []


def invoice_data(**overrides):
    data = {
        "client_name": "Acme Corp",
        "amount": "1500.00",
        "issue_date": datetime(2026, 2, 1),
        "due_date": datetime(2026, 3, 1),
        "type": "accounts_receivable",
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_invoice_numbers_follow_type(db_session):
    receivable = await InvoiceService.create_invoice(db_session, invoice_data())
    payable = await InvoiceService.create_invoice(db_session, invoice_data(type="accounts_payable"))

    assert receivable.invoice_number == "INV-202602-0001"
    assert payable.invoice_number == "BILL-202602-0001"
    assert receivable.status == InvoiceStatus.PENDING


@pytest.mark.asyncio
async def test_invoice_validation(db_session):
    with pytest.raises(ValidationError):
        await InvoiceService.create_invoice(db_session, invoice_data(due_date=datetime(2026, 1, 1)))
    with pytest.raises(ValidationError):
        await InvoiceService.create_invoice(db_session, invoice_data(amount="0"))
    with pytest.raises(ValidationError):
        await InvoiceService.create_invoice(db_session, invoice_data(client_name=""))

    # default issue date is now, so a past due date fails too
    with pytest.raises(ValidationError):
        await InvoiceService.create_invoice(
            db_session, invoice_data(issue_date=None, due_date=utcnow() - timedelta(days=1))
        )


@pytest.mark.asyncio
async def test_duplicate_invoice_number(db_session):
    await InvoiceService.create_invoice(db_session, invoice_data(invoice_number="INV-1"))
    with pytest.raises(DuplicateNumberError):
        await InvoiceService.create_invoice(db_session, invoice_data(invoice_number="INV-1"))
    assert len(await InvoiceService.list_invoices(db_session)) == 1


@pytest.mark.asyncio
async def test_paying_invoice_stamps_paid_at(db_session):
    invoice = await InvoiceService.create_invoice(db_session, invoice_data())
    assert invoice.paid_at is None

    paid = await InvoiceService.update_invoice(db_session, invoice.id, {"status": "paid"})
    assert paid.status == InvoiceStatus.PAID
    assert paid.paid_at is not None

    reopened = await InvoiceService.update_invoice(db_session, invoice.id, {"status": "pending"})
    assert reopened.paid_at is None


@pytest.mark.asyncio
async def test_overdue_is_derived(db_session):
    past = await InvoiceService.create_invoice(db_session, invoice_data())
    future = await InvoiceService.create_invoice(
        db_session, invoice_data(issue_date=None, due_date=utcnow() + timedelta(days=30))
    )

    assert InvoiceResponse.model_validate(past).is_overdue is True
    assert InvoiceResponse.model_validate(future).is_overdue is False
    # stored status is untouched
    assert past.status == InvoiceStatus.PENDING

    paid = await InvoiceService.update_invoice(db_session, past.id, {"status": "paid"})
    assert InvoiceResponse.model_validate(paid).is_overdue is False


@pytest.mark.asyncio
async def test_list_invoices_by_type(db_session):
    await InvoiceService.create_invoice(db_session, invoice_data())
    await InvoiceService.create_invoice(db_session, invoice_data(type="accounts_payable"))

    payables = await InvoiceService.list_invoices(db_session, type=InvoiceType.ACCOUNTS_PAYABLE)
    assert [i.invoice_number[:4] for i in payables] == ["BILL"]


@pytest.mark.asyncio
async def test_transaction_and_invoice_reads_are_idempotent(db_session):
    for day in (1, 2, 3):
        await TransactionService.create_transaction(db_session, tx_data(date=datetime(2026, 3, day)))
    await InvoiceService.create_invoice(db_session, invoice_data())
    await InvoiceService.create_invoice(db_session, invoice_data(type="accounts_payable"))

    def tx_snapshot(rows):
        return [(t.id, t.transaction_number, t.amount, t.status) for t in rows]

    def invoice_snapshot(rows):
        return [(i.id, i.invoice_number, i.amount, i.status, i.paid_at) for i in rows]

    first = tx_snapshot(await TransactionService.list_transactions(db_session))
    assert first == tx_snapshot(await TransactionService.list_transactions(db_session))
    assert len(first) == 3

    first = invoice_snapshot(await InvoiceService.list_invoices(db_session))
    assert first == invoice_snapshot(await InvoiceService.list_invoices(db_session))
    assert len(first) == 2
