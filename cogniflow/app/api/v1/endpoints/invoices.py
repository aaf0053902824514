"""
Invoice API Endpoints.

Covers both receivables (INV-...) and payables (BILL-...).
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from cogniflow.app.db.session import get_db
from cogniflow.app.core.dependencies import get_current_user
from cogniflow.app.core.guards import require_role, FINANCE_WRITERS
from cogniflow.app.models.finance_enums import InvoiceType, InvoiceStatus
from cogniflow.app.schemas.invoice import InvoiceCreate, InvoiceUpdate, InvoiceResponse
from cogniflow.app.services.recorder import InvoiceService
from cogniflow.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    invoice_data: InvoiceCreate,
    current_user: dict = Depends(require_role(FINANCE_WRITERS)),
    db: AsyncSession = Depends(get_db)
):
    invoice = await InvoiceService.create_invoice(db, invoice_data, current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.INVOICE_CREATED, "invoice", invoice.id,
        {"invoice_number": invoice.invoice_number, "amount": str(invoice.amount)}
    )
    return invoice


@router.get("", response_model=List[InvoiceResponse])
async def list_invoices(
    type: Optional[InvoiceType] = None,
    status: Optional[InvoiceStatus] = None,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List invoices, most recent issue date first."""
    return await InvoiceService.list_invoices(db, type=type, status=status, limit=limit)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await InvoiceService.get_invoice(db, invoice_id)


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: int,
    changes: InvoiceUpdate,
    current_user: dict = Depends(require_role(FINANCE_WRITERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Partially update an invoice.

    Marking it paid stamps paid_at; it does not post to the ledger.
    """
    invoice = await InvoiceService.update_invoice(db, invoice_id, changes)

    await log_user_action(
        db, current_user, AuditAction.INVOICE_UPDATED, "invoice", invoice.id,
        changes.model_dump(mode="json", exclude_unset=True)
    )
    return invoice
