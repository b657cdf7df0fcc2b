"""
Dashboard and report figures folded from invoices and expenses.

All functions are pure reductions over whatever records they are handed
(ORM rows or any object with the same attributes) and recompute from scratch
on each call. A record that cannot be read is logged and skipped so one bad
row never blanks a whole report. Month grouping is a separate pass; a record
with a bad date drops out of the groups but still counts in the sums.
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional

from vatbook.core.exceptions import DanglingReference, VATBookError
from vatbook.logger_config import logger
from vatbook.models.expense import ExpenseStatus
from vatbook.models.invoice import InvoiceStatus
from vatbook.services.calculator import ZERO, round2
from vatbook.services.status_resolver import is_overdue

UNKNOWN_CUSTOMER = "Unknown customer"

# English labels whatever LC_TIME is set to
MONTH_NAMES = (
    "", "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Errors that mean "this record is malformed", not "the report is broken"
_SKIPPABLE = (InvalidOperation, ValueError, TypeError, AttributeError, KeyError, VATBookError)


class MonthGroup(NamedTuple):
    label: str
    earliest: date
    documents: List[Any]


# ==================== RECORD ACCESS ====================

def _money(record, attr: str) -> Decimal:
    value = getattr(record, attr)
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise TypeError(f"{attr} is a boolean")
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if not amount.is_finite():
        raise ValueError(f"{attr} is not finite")
    return amount


def _status(record) -> str:
    value = record.status
    return getattr(value, "value", value)


def _label(record) -> str:
    return str(getattr(record, "id", None) or getattr(record, "invoice_number", None) or "?")


def _fold(records: Optional[Iterable], read: Callable[[Any], Decimal], what: str) -> Decimal:
    total = ZERO
    for record in records or []:
        try:
            total += read(record)
        except _SKIPPABLE as e:
            logger.warning(f"Skipping malformed record {_label(record)} in {what}: {str(e)}")
    return round2(total)


def _business_date(record, date_field: Optional[str] = None) -> Optional[date]:
    if date_field:
        value = getattr(record, date_field, None)
    else:
        value = getattr(record, "invoice_date", None) or getattr(record, "expense_date", None)

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


# ==================== INVOICE / EXPENSE TOTALS ====================

def total_revenue(invoices) -> Decimal:
    return _fold(invoices, lambda i: _money(i, "amount_paid"), "total revenue")


def total_vat_collected(invoices) -> Decimal:
    return _fold(invoices, lambda i: _money(i, "vat_amount"), "VAT collected")


def total_vat_paid(expenses) -> Decimal:
    """VAT on approved expenses only."""
    def read(expense):
        if _status(expense) != ExpenseStatus.approved.value:
            return ZERO
        return _money(expense, "vat_amount")
    return _fold(expenses, read, "VAT paid")


def payable_vat(invoices, expenses) -> Decimal:
    """Net VAT owed; negative is a reclaimable credit and is not clamped."""
    return round2(total_vat_collected(invoices) - total_vat_paid(expenses))


def total_outstanding(invoices) -> Decimal:
    return _fold(
        invoices,
        lambda i: _money(i, "total_amount") - _money(i, "amount_paid"),
        "outstanding",
    )


def total_invoiced(invoices) -> Decimal:
    return _fold(invoices, lambda i: _money(i, "total_amount"), "total invoiced")


def total_expenses(expenses) -> Decimal:
    return _fold(expenses, lambda e: _money(e, "total_amount"), "total expenses")


def approved_expense_amount(expenses) -> Decimal:
    def read(expense):
        if _status(expense) != ExpenseStatus.approved.value:
            return ZERO
        return _money(expense, "amount")
    return _fold(expenses, read, "approved expenses")


def profit(invoices, expenses) -> Decimal:
    return round2(total_revenue(invoices) - total_expenses(expenses))


def count_by_status(documents, *statuses) -> int:
    wanted = {getattr(s, "value", s) for s in statuses}
    count = 0
    for document in documents or []:
        try:
            if _status(document) in wanted:
                count += 1
        except AttributeError:
            logger.warning(f"Skipping record {_label(document)} without a status")
    return count


def count_overdue(invoices, today: Optional[date] = None) -> int:
    today = today or date.today()
    count = 0
    for invoice in invoices or []:
        try:
            if is_overdue(invoice, today):
                count += 1
        except _SKIPPABLE as e:
            logger.warning(f"Skipping malformed record {_label(invoice)} in overdue count: {str(e)}")
    return count


# ==================== GROUPING ====================

def group_by_month(documents, date_field: Optional[str] = None) -> List[MonthGroup]:
    """
    Bucket documents under "January 2024" style labels, newest bucket first
    (ordered by the earliest date in each bucket). Documents keep their
    input order inside a bucket.
    """
    buckets: Dict[str, List[Any]] = {}
    earliest: Dict[str, date] = {}

    for document in documents or []:
        business_date = _business_date(document, date_field)
        if business_date is None:
            logger.debug(f"Record {_label(document)} has no usable date; left out of month groups")
            continue
        key = f"{MONTH_NAMES[business_date.month]} {business_date.year}"
        buckets.setdefault(key, []).append(document)
        if key not in earliest or business_date < earliest[key]:
            earliest[key] = business_date

    ordered = sorted(buckets, key=lambda key: earliest[key], reverse=True)
    return [MonthGroup(label=key, earliest=earliest[key], documents=buckets[key]) for key in ordered]


# ==================== SUMMARIES ====================

def dashboard_summary(invoices, expenses, today: Optional[date] = None) -> Dict[str, Any]:
    invoices = list(invoices or [])
    expenses = list(expenses or [])

    revenue = total_revenue(invoices)
    vat_collected = total_vat_collected(invoices)
    vat_paid = total_vat_paid(expenses)
    expenses_total = total_expenses(expenses)

    return {
        "total_revenue": revenue,
        "total_vat_collected": vat_collected,
        "total_vat_paid": vat_paid,
        "payable_vat": payable_vat(invoices, expenses),
        "total_outstanding": total_outstanding(invoices),
        "total_invoiced": total_invoiced(invoices),
        "invoice_count": len(invoices),
        "paid_invoices": count_by_status(invoices, InvoiceStatus.paid),
        "unpaid_invoices": count_by_status(
            invoices, InvoiceStatus.unpaid, InvoiceStatus.partially_paid
        ),
        "draft_invoices": count_by_status(invoices, InvoiceStatus.draft),
        "overdue_invoices": count_overdue(invoices, today),
        "total_expenses": expenses_total,
        "approved_expenses": approved_expense_amount(expenses),
        "pending_expenses": count_by_status(expenses, ExpenseStatus.pending),
        "expense_count": len(expenses),
        "profit": round2(revenue - expenses_total),
    }


def expense_summary(expenses) -> Dict[str, Any]:
    expenses = list(expenses or [])
    return {
        "count": len(expenses),
        "total_expenses": total_expenses(expenses),
        "approved_amount": approved_expense_amount(expenses),
        "approved_vat": total_vat_paid(expenses),
        "pending_count": count_by_status(expenses, ExpenseStatus.pending),
        "counts_by_status": {
            s.value: count_by_status(expenses, s) for s in ExpenseStatus
        },
    }


def customer_summary(customer, invoices) -> Dict[str, Any]:
    """Figures for one customer's invoices (customer detail view)."""
    customer_id = getattr(customer, "id", None)
    invoices = [i for i in (invoices or []) if getattr(i, "customer_id", None) == customer_id]
    return {
        "invoice_count": len(invoices),
        "total_invoiced": total_invoiced(invoices),
        "total_paid": total_revenue(invoices),
        "outstanding": total_outstanding(invoices),
        "paid_count": count_by_status(invoices, InvoiceStatus.paid),
        "unpaid_count": count_by_status(
            invoices, InvoiceStatus.unpaid, InvoiceStatus.partially_paid
        ),
    }


def resolve_customer(customers: Mapping[str, Any], customer_id):
    customer = customers.get(customer_id) if customer_id is not None else None
    if customer is None:
        raise DanglingReference("Customer", customer_id)
    return customer


def revenue_by_customer(invoices, customers) -> List[Dict[str, Any]]:
    """
    Per-customer invoiced / paid / outstanding. Invoices whose customer has
    been deleted are collected under a single "Unknown customer" row.
    """
    if not isinstance(customers, Mapping):
        customers = {c.id: c for c in customers or []}

    rows: Dict[Optional[str], Dict[str, Any]] = defaultdict(lambda: {
        "total_invoiced": ZERO,
        "total_paid": ZERO,
        "outstanding": ZERO,
        "invoice_count": 0,
    })
    names: Dict[Optional[str], str] = {}

    for invoice in invoices or []:
        try:
            total = _money(invoice, "total_amount")
            paid = _money(invoice, "amount_paid")
            customer_id = invoice.customer_id
        except _SKIPPABLE as e:
            logger.warning(f"Skipping malformed record {_label(invoice)} in customer revenue: {str(e)}")
            continue

        try:
            customer = resolve_customer(customers, customer_id)
            key = customer_id
            names[key] = customer.name
        except DanglingReference as e:
            logger.warning(f"Invoice {_label(invoice)}: {str(e)}; reporting as unknown customer")
            key = None
            names[key] = UNKNOWN_CUSTOMER

        row = rows[key]
        row["total_invoiced"] += total
        row["total_paid"] += paid
        row["outstanding"] += total - paid
        row["invoice_count"] += 1

    result = []
    for key, row in rows.items():
        result.append({
            "customer_id": key,
            "customer_name": names[key],
            "total_invoiced": round2(row["total_invoiced"]),
            "total_paid": round2(row["total_paid"]),
            "outstanding": round2(row["outstanding"]),
            "invoice_count": row["invoice_count"],
        })
    result.sort(key=lambda r: r["total_invoiced"], reverse=True)
    return result
