"""
Transaction and invoice recording.

Validates input, assigns business numbers and persists records. Neither
transactions nor invoices post to the ledger; a ledger entry may reference
a transaction explicitly instead.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError as SchemaValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cogniflow.app.core.exceptions import DuplicateNumberError, NotFoundError, ValidationError
from cogniflow.app.core.money import to_money
from cogniflow.app.core.timeutils import to_naive_utc, utcnow
from cogniflow.app.models.finance_enums import (
    InvoiceStatus, InvoiceType, TransactionStatus, TransactionType
)
from cogniflow.app.models.invoice import Invoice
from cogniflow.app.models.transaction import Transaction
from cogniflow.app.schemas.invoice import InvoiceCreate, InvoiceUpdate
from cogniflow.app.schemas.transaction import TransactionCreate, TransactionUpdate
from cogniflow.app.services.numbering import (
    PAYABLE_PREFIX, RECEIVABLE_PREFIX, TRANSACTION_PREFIX, next_free_number
)

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def parse_input(schema: Type[SchemaT], data: Union[SchemaT, Dict[str, Any]]) -> SchemaT:
    """Accept a schema instance or a plain dict; schema violations become ValidationError."""
    if isinstance(data, schema):
        return data
    try:
        return schema(**data)
    except SchemaValidationError as exc:
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors()
        ]
        raise ValidationError(f"Invalid {schema.__name__} data", {"errors": errors})


def _invoice_prefix(invoice_type: InvoiceType) -> str:
    return RECEIVABLE_PREFIX if invoice_type == InvoiceType.ACCOUNTS_RECEIVABLE else PAYABLE_PREFIX


class TransactionService:

    @staticmethod
    async def create_transaction(
        db: AsyncSession,
        data: Union[TransactionCreate, Dict[str, Any]],
        created_by: Optional[int] = None
    ) -> Transaction:
        """
        Record a transaction.

        Raises:
            ValidationError: malformed data or amount sign not matching type
            DuplicateNumberError: transaction_number already used
        """
        data = parse_input(TransactionCreate, data)
        tx_date = to_naive_utc(data.date) or utcnow()

        number = data.transaction_number
        if number:
            taken = await db.execute(select(Transaction.id).where(Transaction.transaction_number == number))
            if taken.first():
                raise DuplicateNumberError("Transaction", number)
        else:
            number = await next_free_number(db, TRANSACTION_PREFIX, Transaction.transaction_number, tx_date)

        transaction = Transaction(
            transaction_number=number,
            description=data.description,
            amount=to_money(data.amount),
            currency=data.currency.upper(),
            type=data.type,
            category=data.category,
            status=data.status,
            date=tx_date,
            created_by=created_by
        )
        db.add(transaction)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning("Duplicate transaction number rejected: %s", number)
            raise DuplicateNumberError("Transaction", number)
        await db.refresh(transaction)

        logger.info("Transaction recorded: %s %s %s", transaction.transaction_number, transaction.type.value, transaction.amount)
        return transaction

    @staticmethod
    async def update_transaction(
        db: AsyncSession,
        transaction_id: int,
        partial: Union[TransactionUpdate, Dict[str, Any]]
    ) -> Transaction:
        """Merge the supplied fields into an existing transaction."""
        if isinstance(partial, dict) and "transaction_number" in partial:
            raise ValidationError("transaction_number cannot be changed")
        partial = parse_input(TransactionUpdate, partial)
        changes = partial.model_dump(exclude_unset=True, exclude_none=True)

        transaction = await TransactionService.get_transaction(db, transaction_id)

        new_type = changes.get("type", transaction.type)
        new_amount = to_money(changes.get("amount", transaction.amount))
        if new_amount == 0:
            raise ValidationError("Amount must be non-zero")
        if new_type != TransactionType.ADJUSTMENT and new_amount < 0:
            raise ValidationError(f"Amount must be positive for {new_type.value} transactions")

        if "amount" in changes:
            changes["amount"] = new_amount
        if "currency" in changes:
            changes["currency"] = changes["currency"].upper()
        if "date" in changes:
            changes["date"] = to_naive_utc(changes["date"])

        for field, value in changes.items():
            setattr(transaction, field, value)

        await db.commit()
        await db.refresh(transaction)
        return transaction

    @staticmethod
    async def get_transaction(db: AsyncSession, transaction_id: int) -> Transaction:
        transaction = await db.get(Transaction, transaction_id)
        if not transaction:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    @staticmethod
    async def list_transactions(
        db: AsyncSession,
        type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None,
        limit: Optional[int] = None
    ) -> List[Transaction]:
        """Transactions, most recent date first."""
        query = select(Transaction).order_by(Transaction.date.desc(), Transaction.id.desc())
        if type:
            query = query.where(Transaction.type == type)
        if status:
            query = query.where(Transaction.status == status)
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return result.scalars().all()


class InvoiceService:

    @staticmethod
    async def create_invoice(
        db: AsyncSession,
        data: Union[InvoiceCreate, Dict[str, Any]],
        created_by: Optional[int] = None
    ) -> Invoice:
        """
        Record a pending invoice.

        Receivables are numbered INV-..., payables BILL-...
        """
        data = parse_input(InvoiceCreate, data)
        issue_date = to_naive_utc(data.issue_date) or utcnow()
        due_date = to_naive_utc(data.due_date)
        if due_date < issue_date:
            raise ValidationError("due_date must not be before issue_date", {
                "issue_date": issue_date.isoformat(), "due_date": due_date.isoformat()
            })

        number = data.invoice_number
        if number:
            taken = await db.execute(select(Invoice.id).where(Invoice.invoice_number == number))
            if taken.first():
                raise DuplicateNumberError("Invoice", number)
        else:
            number = await next_free_number(db, _invoice_prefix(data.type), Invoice.invoice_number, issue_date)

        invoice = Invoice(
            invoice_number=number,
            client_name=data.client_name,
            amount=to_money(data.amount),
            currency=data.currency.upper(),
            issue_date=issue_date,
            due_date=due_date,
            status=InvoiceStatus.PENDING,
            type=data.type,
            notes=data.notes,
            created_by=created_by
        )
        db.add(invoice)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning("Duplicate invoice number rejected: %s", number)
            raise DuplicateNumberError("Invoice", number)
        await db.refresh(invoice)

        logger.info("Invoice recorded: %s %s %s", invoice.invoice_number, invoice.client_name, invoice.amount)
        return invoice

    @staticmethod
    async def update_invoice(
        db: AsyncSession,
        invoice_id: int,
        partial: Union[InvoiceUpdate, Dict[str, Any]]
    ) -> Invoice:
        """
        Merge the supplied fields into an existing invoice.

        Moving to PAID stamps paid_at; moving away from PAID clears it.
        Payment does not post to the ledger.
        """
        if isinstance(partial, dict) and "invoice_number" in partial:
            raise ValidationError("invoice_number cannot be changed")
        partial = parse_input(InvoiceUpdate, partial)
        changes = partial.model_dump(exclude_unset=True, exclude_none=True)

        invoice = await InvoiceService.get_invoice(db, invoice_id)

        if "due_date" in changes:
            changes["due_date"] = to_naive_utc(changes["due_date"])
            if changes["due_date"] < invoice.issue_date:
                raise ValidationError("due_date must not be before issue_date")
        if "amount" in changes:
            changes["amount"] = to_money(changes["amount"])
        if "currency" in changes:
            changes["currency"] = changes["currency"].upper()

        new_status = changes.get("status")
        if new_status == InvoiceStatus.PAID and invoice.status != InvoiceStatus.PAID:
            invoice.paid_at = utcnow()
        elif new_status is not None and new_status != InvoiceStatus.PAID:
            invoice.paid_at = None

        for field, value in changes.items():
            setattr(invoice, field, value)

        await db.commit()
        await db.refresh(invoice)
        return invoice

    @staticmethod
    async def get_invoice(db: AsyncSession, invoice_id: int) -> Invoice:
        invoice = await db.get(Invoice, invoice_id)
        if not invoice:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    @staticmethod
    async def list_invoices(
        db: AsyncSession,
        type: Optional[InvoiceType] = None,
        status: Optional[InvoiceStatus] = None,
        limit: Optional[int] = None
    ) -> List[Invoice]:
        """Invoices, most recent issue date first."""
        query = select(Invoice).order_by(Invoice.issue_date.desc(), Invoice.id.desc())
        if type:
            query = query.where(Invoice.type == type)
        if status:
            query = query.where(Invoice.status == status)
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return result.scalars().all()
