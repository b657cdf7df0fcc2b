from typing import Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from vatbook.core.config import settings
from vatbook.core.dependencies import get_current_user, get_db
from vatbook.core.exceptions import VATBookError
from vatbook.logger_config import logger
from vatbook.models.customer import Customer
from vatbook.models.invoice import Invoice, InvoiceStatus
from vatbook.models.user import User
from vatbook.schemas.invoice import (
    InvoiceCreate,
    InvoiceGroupedResponse,
    InvoiceListResponse,
    InvoiceMonthGroup,
    InvoiceResponse,
    InvoiceUpdate,
    LineItemOut,
    PaymentUpdate,
    TotalsPreviewRequest,
    TotalsPreviewResponse,
)
from vatbook.services import reporting
from vatbook.services.calculator import outstanding
from vatbook.services.customer_service import get_customer_map
from vatbook.services.invoice_service import (
    create_invoice,
    delete_invoice,
    finalize_invoice,
    get_all_invoices,
    get_invoice_by_id,
    price_invoice,
    record_payment,
    update_invoice,
)

router = APIRouter()

# Invoice list tabs; "unpaid" covers part-paid invoices too
TABS = {
    "draft": [InvoiceStatus.draft],
    "unpaid": [InvoiceStatus.unpaid, InvoiceStatus.partially_paid],
    "paid": [InvoiceStatus.paid],
    "all": None,
}


def _to_response(invoice: Invoice, customers: Dict[str, Customer]) -> InvoiceResponse:
    customer = customers.get(invoice.customer_id)
    return InvoiceResponse(
        id=invoice.id,
        customer_id=invoice.customer_id,
        customer_name=customer.name if customer else reporting.UNKNOWN_CUSTOMER,
        invoice_number=invoice.invoice_number,
        invoice_date=invoice.invoice_date,
        due_date=invoice.due_date,
        notes=invoice.notes,
        line_items=[LineItemOut(**item) for item in invoice.line_items or []],
        apply_vat=invoice.apply_vat,
        subtotal=invoice.subtotal,
        vat_amount=invoice.vat_amount,
        total_amount=invoice.total_amount,
        amount_paid=invoice.amount_paid,
        outstanding=outstanding(invoice.total_amount, invoice.amount_paid),
        status=invoice.status,
        created_at=invoice.created_at,
        updated_at=invoice.updated_at,
    )


@router.post("/preview", response_model=TotalsPreviewResponse)
def preview_totals(
    data: TotalsPreviewRequest,
    current_user: User = Depends(get_current_user),
):
    """Totals for a set of line items without saving anything."""
    priced, totals = price_invoice(data.line_items, data.apply_vat)
    return TotalsPreviewResponse(
        line_items=[LineItemOut(**item) for item in priced],
        subtotal=totals.subtotal,
        vat_amount=totals.vat,
        total_amount=totals.total,
        vat_rate=settings.VAT_RATE,
    )


@router.get("/grouped", response_model=InvoiceGroupedResponse)
def list_invoices_by_month(
    tab: Literal["all", "draft", "unpaid", "paid"] = Query("all"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Invoices for a list tab bucketed by month, newest month first. The
    footer totals cover all invoices regardless of tab.
    """
    invoices, _ = get_all_invoices(db, current_user.id, limit=None)
    customers = get_customer_map(db, current_user.id)

    statuses = TABS[tab]
    wanted = {s.value for s in statuses} if statuses else None
    shown = [i for i in invoices if wanted is None or i.status.value in wanted]

    groups = [
        InvoiceMonthGroup(
            month=group.label,
            invoices=[_to_response(i, customers) for i in group.documents],
        )
        for group in reporting.group_by_month(shown, date_field="invoice_date")
    ]
    return InvoiceGroupedResponse(
        total=len(shown),
        total_paid=reporting.total_revenue(invoices),
        total_outstanding=reporting.total_outstanding(invoices),
        total_invoiced=reporting.total_invoiced(invoices),
        groups=groups,
    )


@router.get("", response_model=InvoiceListResponse)
def list_invoices(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    invoice_status: Optional[InvoiceStatus] = Query(None, alias="status"),
    customer_id: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    invoices, total = get_all_invoices(
        db,
        current_user.id,
        skip=skip,
        limit=limit,
        statuses=[invoice_status] if invoice_status else None,
        customer_id=customer_id,
    )
    customers = get_customer_map(db, current_user.id)
    return InvoiceListResponse(
        total=total,
        invoices=[_to_response(i, customers) for i in invoices],
    )


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice_route(
    data: InvoiceCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save as draft (send=false) or issue as unpaid (send=true)."""
    try:
        invoice = create_invoice(
            db,
            owner_id=current_user.id,
            customer_id=data.customer_id,
            line_items=data.line_items,
            apply_vat=data.apply_vat,
            invoice_date=data.invoice_date,
            due_date=data.due_date,
            notes=data.notes,
            send=data.send,
        )
    except VATBookError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return _to_response(invoice, get_customer_map(db, current_user.id))


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    invoice = get_invoice_by_id(db, current_user.id, invoice_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return _to_response(invoice, get_customer_map(db, current_user.id))


@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice_route(
    invoice_id: str,
    data: InvoiceUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Edit a draft invoice; anything else is rejected with 409."""
    try:
        invoice = update_invoice(
            db, current_user.id, invoice_id, data.model_dump(exclude_unset=True)
        )
    except VATBookError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info(f"invoice {invoice_id} updated by {current_user.email}")
    return _to_response(invoice, get_customer_map(db, current_user.id))


@router.post("/{invoice_id}/finalize", response_model=InvoiceResponse)
def finalize_invoice_route(
    invoice_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save a draft as final. Drafts cannot be re-opened afterwards."""
    try:
        invoice = finalize_invoice(db, current_user.id, invoice_id)
    except VATBookError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _to_response(invoice, get_customer_map(db, current_user.id))


@router.put("/{invoice_id}/payment", response_model=InvoiceResponse)
def record_payment_route(
    invoice_id: str,
    data: PaymentUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Set the amount paid so far; status follows from it."""
    invoice = record_payment(db, current_user.id, invoice_id, data.amount_paid)
    return _to_response(invoice, get_customer_map(db, current_user.id))


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice_route(
    invoice_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a draft invoice."""
    try:
        success = delete_invoice(db, current_user.id, invoice_id)
    except VATBookError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    if not success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")

    logger.info(f"invoice {invoice_id} deleted by {current_user.email}")
    return None
