"""
Invoice lifecycle.

    draft --finalize--> unpaid | partially_paid | paid
    unpaid <-> partially_paid <-> paid   (driven only by amount_paid)

Drafts are the only editable invoices and nothing ever returns to draft.
`overdue` is a declared status that no transition here produces.
"""

from datetime import date
from typing import Optional

from vatbook.core.exceptions import InvalidState
from vatbook.models.invoice import InvoiceStatus
from vatbook.services.calculator import REJECT, round2, to_amount

OPEN_STATUSES = (InvoiceStatus.unpaid, InvoiceStatus.partially_paid)


def _as_status(value) -> InvoiceStatus:
    return value if isinstance(value, InvoiceStatus) else InvoiceStatus(value)


def compute_status(amount_paid, total_amount) -> InvoiceStatus:
    """Payment status from what has been paid against what is owed."""
    paid = round2(amount_paid or 0)
    total = round2(total_amount or 0)
    if paid <= 0:
        return InvoiceStatus.unpaid
    if paid >= total:
        return InvoiceStatus.paid
    return InvoiceStatus.partially_paid


def is_editable(invoice) -> bool:
    return _as_status(invoice.status) == InvoiceStatus.draft


def ensure_editable(invoice) -> None:
    """Line items, customer, dates, notes and the VAT flag change only on drafts."""
    if not is_editable(invoice):
        raise InvalidState(
            f"Only draft invoices can be edited (invoice is {_as_status(invoice.status).value})"
        )


def check_transition(current, target, amount_paid=None, total_amount=None) -> None:
    """
    Reject moves back to draft or into overdue. Given the amounts, a
    payment status must also be the one compute_status derives from them.
    """
    current = _as_status(current)
    target = _as_status(target)
    if target == current:
        return
    if target == InvoiceStatus.draft:
        raise InvalidState(f"Cannot move a {current.value} invoice back to draft")
    if target == InvoiceStatus.overdue:
        raise InvalidState("Overdue is not set by a status transition")
    if total_amount is not None:
        expected = compute_status(amount_paid, total_amount)
        if target != expected:
            raise InvalidState(
                f"Cannot move to {target.value}: paid {round2(amount_paid or 0)} "
                f"of {round2(total_amount)} is {expected.value}"
            )


def finalize(invoice) -> InvoiceStatus:
    """
    Save a draft as final. The resulting status comes from the payment
    formula, so an untouched draft becomes unpaid.
    """
    if not is_editable(invoice):
        raise InvalidState(
            f"Invoice {invoice.invoice_number} is already {_as_status(invoice.status).value}"
        )
    target = compute_status(invoice.amount_paid, invoice.total_amount)
    check_transition(invoice.status, target, invoice.amount_paid, invoice.total_amount)
    invoice.status = target
    return target


def apply_payment(invoice, amount_paid) -> InvoiceStatus:
    """
    Set the amount paid so far and re-derive the status. Lowering the
    amount (refund or correction) goes through the same formula.
    """
    if is_editable(invoice):
        raise InvalidState("Finalize the draft before recording payments")

    paid = round2(to_amount(amount_paid, REJECT, field="amount_paid"))
    target = compute_status(paid, invoice.total_amount)
    check_transition(invoice.status, target, paid, invoice.total_amount)

    invoice.amount_paid = paid
    invoice.status = target
    return target


def is_overdue(invoice, today: Optional[date] = None) -> bool:
    """Open invoice whose due date has passed. Reporting only, never persisted."""
    today = today or date.today()
    due = getattr(invoice, "due_date", None)
    if due is None:
        return False
    if isinstance(due, str):
        try:
            due = date.fromisoformat(due[:10])
        except ValueError:
            return False
    status = _as_status(invoice.status)
    return (status in OPEN_STATUSES or status == InvoiceStatus.overdue) and due < today
