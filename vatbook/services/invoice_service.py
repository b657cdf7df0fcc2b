# vatbook/services/invoice_service.py

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from decimal import Decimal
from datetime import date

from vatbook.core.config import settings
from vatbook.core.exceptions import NotFound, VATBookError
from vatbook.models.invoice import Invoice, InvoiceStatus
from vatbook.services import calculator, status_resolver
from vatbook.services.customer_service import get_customer_by_id
from vatbook.utils.identifiers import generate_invoice_number
from vatbook.logger_config import logger

MAX_NUMBER_ATTEMPTS = 10

# Fields a draft edit may touch
EDITABLE_FIELDS = ("customer_id", "invoice_date", "due_date", "notes", "line_items", "apply_vat")


# ==================== HELPER FUNCTIONS ====================

def _serialize_line_items(priced: List[dict]) -> List[dict]:
    """Decimals to strings so the JSON column round-trips exactly."""
    return [
        {
            "description": item["description"],
            "quantity": str(item["quantity"]),
            "unit_price": str(item["unit_price"]),
            "line_total": str(item["line_total"]),
        }
        for item in priced
    ]


def price_invoice(line_items: Iterable, apply_vat: bool) -> Tuple[List[dict], calculator.InvoiceTotals]:
    """Priced line items plus totals at the configured VAT rate and amount policy."""
    policy = settings.AMOUNT_POLICY
    priced = calculator.price_line_items(line_items, policy=policy)
    totals = calculator.compute_invoice_totals(
        priced, apply_vat, vat_rate=settings.VAT_RATE, policy=policy
    )
    return priced, totals


def _apply_totals(invoice: Invoice, line_items: Iterable, apply_vat: bool) -> None:
    priced, totals = price_invoice(line_items, apply_vat)
    invoice.line_items = _serialize_line_items(priced)
    invoice.apply_vat = apply_vat
    invoice.subtotal = totals.subtotal
    invoice.vat_amount = totals.vat
    invoice.total_amount = totals.total

    logger.debug(
        f"Invoice totals: {len(priced)} items, subtotal={totals.subtotal}, "
        f"vat={totals.vat}, total={totals.total}"
    )


def _require_customer(db: Session, owner_id: int, customer_id: str) -> None:
    if not get_customer_by_id(db, owner_id, customer_id):
        logger.error(f"Customer {customer_id} not found for owner {owner_id}")
        raise ValueError("Customer not found")


def _unique_invoice_number(db: Session, owner_id: int) -> str:
    """Numbers carry the day the invoice was created, not its invoice_date."""
    for _ in range(MAX_NUMBER_ATTEMPTS):
        number = generate_invoice_number(date.today())
        exists = (
            db.query(Invoice.id)
            .filter(Invoice.owner_id == owner_id, Invoice.invoice_number == number)
            .first()
        )
        if not exists:
            return number
    logger.error(f"Failed to generate unique invoice number after {MAX_NUMBER_ATTEMPTS} attempts")
    raise ValueError("Failed to generate unique invoice number")


# ==================== QUERIES ====================

def get_invoice_by_id(db: Session, owner_id: int, invoice_id: str) -> Optional[Invoice]:
    return (
        db.query(Invoice)
        .filter(Invoice.id == invoice_id, Invoice.owner_id == owner_id)
        .first()
    )


def get_all_invoices(
    db: Session,
    owner_id: int,
    skip: int = 0,
    limit: Optional[int] = 100,
    statuses: Optional[Sequence[InvoiceStatus]] = None,
    customer_id: Optional[str] = None,
) -> Tuple[List[Invoice], int]:
    """Owner's invoices, newest first. limit=None returns everything (reports)."""
    query = db.query(Invoice).filter(Invoice.owner_id == owner_id)

    if statuses:
        query = query.filter(Invoice.status.in_(list(statuses)))
        logger.debug(f"Filtering by statuses: {statuses}")

    if customer_id:
        query = query.filter(Invoice.customer_id == customer_id)
        logger.debug(f"Filtering by customer_id: {customer_id}")

    total = query.count()
    query = query.order_by(Invoice.created_at.desc(), Invoice.invoice_number.desc()).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all(), total


# ==================== COMMANDS ====================

def create_invoice(
    db: Session,
    owner_id: int,
    customer_id: str,
    line_items: List,
    apply_vat: bool = True,
    invoice_date: Optional[date] = None,
    due_date: Optional[date] = None,
    notes: Optional[str] = None,
    send: bool = False,
) -> Invoice:
    """
    Create an invoice either as a draft or, with send=True, issued straight
    away as unpaid. Totals are computed here from the line items.
    """
    logger.info(f"Creating invoice - Owner: {owner_id}, Customer: {customer_id}, Items: {len(line_items or [])}, Send: {send}")

    try:
        _require_customer(db, owner_id, customer_id)

        if not line_items:
            raise ValueError("Please add at least one line item")
        if send and not due_date:
            raise ValueError("Please set a due date")

        invoice_date = invoice_date or date.today()
        invoice = Invoice(
            owner_id=owner_id,
            customer_id=customer_id,
            invoice_number=_unique_invoice_number(db, owner_id),
            invoice_date=invoice_date,
            due_date=due_date,
            notes=notes,
            amount_paid=calculator.ZERO,
            status=InvoiceStatus.draft,
        )
        _apply_totals(invoice, line_items, apply_vat)

        if send:
            status_resolver.finalize(invoice)

        db.add(invoice)
        db.commit()
        db.refresh(invoice)

        logger.info(f"Invoice {invoice.invoice_number} created as {invoice.status.value}, total {invoice.total_amount}")
        return invoice

    except (ValueError, VATBookError):
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Database integrity error creating invoice: {str(e)}")
        raise ValueError("Failed to create invoice due to database constraint.")


def update_invoice(db: Session, owner_id: int, invoice_id: str, changes: Dict) -> Invoice:
    """
    Edit a draft. Totals are recomputed from the resulting line items and
    VAT flag before anything is written.
    """
    invoice = get_invoice_by_id(db, owner_id, invoice_id)
    if not invoice:
        raise NotFound("Invoice", invoice_id)

    try:
        status_resolver.ensure_editable(invoice)

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        if changes.get("customer_id") is not None:
            _require_customer(db, owner_id, changes["customer_id"])
            invoice.customer_id = changes["customer_id"]
        if changes.get("invoice_date") is not None:
            invoice.invoice_date = changes["invoice_date"]
        if "due_date" in changes:
            invoice.due_date = changes["due_date"]
        if "notes" in changes:
            invoice.notes = changes["notes"] or None

        line_items = changes.get("line_items")
        if line_items is None:
            line_items = invoice.line_items or []
        apply_vat = changes.get("apply_vat")
        if apply_vat is None:
            apply_vat = invoice.apply_vat
        _apply_totals(invoice, line_items, apply_vat)

        db.commit()
        db.refresh(invoice)
        logger.info(f"Draft invoice {invoice.invoice_number} updated, total {invoice.total_amount}")
        return invoice

    except (ValueError, VATBookError) as e:
        db.rollback()
        logger.warning(f"Invoice {invoice_id} not updated: {str(e)}")
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Database integrity error updating invoice: {str(e)}")
        raise ValueError("Failed to update invoice.")


def finalize_invoice(db: Session, owner_id: int, invoice_id: str) -> Invoice:
    """Save a draft as final ("send"). One way."""
    invoice = get_invoice_by_id(db, owner_id, invoice_id)
    if not invoice:
        raise NotFound("Invoice", invoice_id)

    try:
        if not invoice.due_date:
            raise ValueError("Please set a due date")
        old_status = invoice.status
        status_resolver.finalize(invoice)
        db.commit()
        db.refresh(invoice)
        logger.info(f"Invoice {invoice.invoice_number}: {old_status.value} → {invoice.status.value}")
        return invoice
    except (ValueError, VATBookError) as e:
        db.rollback()
        logger.warning(f"Invoice {invoice_id} not finalized: {str(e)}")
        raise


def record_payment(db: Session, owner_id: int, invoice_id: str, amount_paid: Decimal) -> Invoice:
    """
    Set how much of the invoice has been paid and re-derive its status.
    The amount replaces the previous figure, so a lower value records a
    refund or correction.
    """
    invoice = get_invoice_by_id(db, owner_id, invoice_id)
    if not invoice:
        raise NotFound("Invoice", invoice_id)

    try:
        old_paid = invoice.amount_paid
        old_status = invoice.status
        status_resolver.apply_payment(invoice, amount_paid)
        db.commit()
        db.refresh(invoice)

        logger.info(
            f"Invoice updated: {invoice.invoice_number} - "
            f"Paid: {old_paid} → {invoice.amount_paid}, "
            f"Status: {old_status.value} → {invoice.status.value}"
        )
        return invoice
    except (ValueError, VATBookError) as e:
        db.rollback()
        logger.warning(f"Payment not recorded on invoice {invoice_id}: {str(e)}")
        raise


def delete_invoice(db: Session, owner_id: int, invoice_id: str) -> bool:
    """Only drafts can be deleted."""
    invoice = get_invoice_by_id(db, owner_id, invoice_id)
    if not invoice:
        return False

    status_resolver.ensure_editable(invoice)
    db.delete(invoice)
    try:
        db.commit()
        logger.info(f"Draft invoice {invoice.invoice_number} deleted")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting invoice: {str(e)}")
        raise ValueError("Failed to delete invoice.")
