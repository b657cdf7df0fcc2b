from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from vatbook.core.exceptions import InvalidAmount, InvalidState
from vatbook.models.invoice import InvoiceStatus
from vatbook.services import status_resolver
from vatbook.services.status_resolver import (
    apply_payment,
    check_transition,
    compute_status,
    ensure_editable,
    finalize,
    is_overdue,
)


def make_invoice(status=InvoiceStatus.draft, total="107.50", paid="0", due_date=None):
    return SimpleNamespace(
        invoice_number="INV-20240115-0001",
        status=status,
        total_amount=Decimal(total),
        amount_paid=Decimal(paid),
        due_date=due_date,
    )


@pytest.mark.parametrize(
    "paid, total, expected",
    [
        ("0", "100", InvoiceStatus.unpaid),
        ("0.00", "0", InvoiceStatus.unpaid),
        ("0.01", "100", InvoiceStatus.partially_paid),
        ("99.99", "100", InvoiceStatus.partially_paid),
        ("100", "100", InvoiceStatus.paid),
        ("150", "100", InvoiceStatus.paid),
    ],
)
def test_compute_status(paid, total, expected):
    assert compute_status(Decimal(paid), Decimal(total)) == expected


def test_compute_status_treats_none_as_zero():
    assert compute_status(None, Decimal("10")) == InvoiceStatus.unpaid


def test_finalize_untouched_draft_becomes_unpaid():
    invoice = make_invoice()
    assert finalize(invoice) == InvoiceStatus.unpaid
    assert invoice.status == InvoiceStatus.unpaid


def test_finalize_twice_raises():
    invoice = make_invoice()
    finalize(invoice)
    with pytest.raises(InvalidState):
        finalize(invoice)


def test_payment_on_draft_raises():
    invoice = make_invoice()
    with pytest.raises(InvalidState):
        apply_payment(invoice, Decimal("10"))
    assert invoice.amount_paid == Decimal("0")


def test_payments_move_status_both_ways():
    invoice = make_invoice(status=InvoiceStatus.unpaid)

    assert apply_payment(invoice, "50") == InvoiceStatus.partially_paid
    assert invoice.amount_paid == Decimal("50.00")

    assert apply_payment(invoice, Decimal("107.50")) == InvoiceStatus.paid

    # refund / correction
    assert apply_payment(invoice, Decimal("0")) == InvoiceStatus.unpaid
    assert invoice.amount_paid == Decimal("0.00")


def test_negative_payment_rejected():
    invoice = make_invoice(status=InvoiceStatus.unpaid)
    with pytest.raises(InvalidAmount):
        apply_payment(invoice, "-1")
    assert invoice.status == InvoiceStatus.unpaid


def test_only_drafts_are_editable():
    ensure_editable(make_invoice())
    for status in (InvoiceStatus.unpaid, InvoiceStatus.partially_paid, InvoiceStatus.paid):
        with pytest.raises(InvalidState):
            ensure_editable(make_invoice(status=status))


def test_nothing_returns_to_draft():
    with pytest.raises(InvalidState):
        check_transition(InvoiceStatus.paid, InvoiceStatus.draft)
    with pytest.raises(InvalidState):
        check_transition("unpaid", "overdue")
    check_transition(InvoiceStatus.draft, InvoiceStatus.draft)
    check_transition(InvoiceStatus.unpaid, InvoiceStatus.paid)


def test_transition_must_match_payment_formula():
    with pytest.raises(InvalidState):
        check_transition(InvoiceStatus.unpaid, InvoiceStatus.paid, Decimal("10"), Decimal("100"))
    with pytest.raises(InvalidState):
        check_transition("partially_paid", "unpaid", Decimal("50"), Decimal("100"))
    with pytest.raises(InvalidState):
        check_transition(InvoiceStatus.draft, InvoiceStatus.paid, Decimal("0"), Decimal("100"))

    check_transition(InvoiceStatus.unpaid, InvoiceStatus.partially_paid, Decimal("10"), Decimal("100"))
    check_transition(InvoiceStatus.partially_paid, InvoiceStatus.paid, Decimal("100"), Decimal("100"))
    check_transition(InvoiceStatus.draft, InvoiceStatus.unpaid, None, Decimal("100"))


def test_is_overdue():
    today = date(2024, 3, 10)
    past = date(2024, 3, 1)
    future = date(2024, 3, 20)

    assert is_overdue(make_invoice(InvoiceStatus.unpaid, due_date=past), today)
    assert is_overdue(make_invoice(InvoiceStatus.partially_paid, due_date=past), today)
    assert not is_overdue(make_invoice(InvoiceStatus.paid, due_date=past), today)
    assert not is_overdue(make_invoice(InvoiceStatus.draft, due_date=past), today)
    assert not is_overdue(make_invoice(InvoiceStatus.unpaid, due_date=future), today)
    assert not is_overdue(make_invoice(InvoiceStatus.unpaid, due_date=today), today)
    assert not is_overdue(make_invoice(InvoiceStatus.unpaid), today)


def test_is_overdue_reads_iso_strings():
    invoice = make_invoice(InvoiceStatus.unpaid)
    invoice.due_date = "2024-01-01"
    assert is_overdue(invoice, date(2024, 2, 1))
    invoice.due_date = "not a date"
    assert not is_overdue(invoice, date(2024, 2, 1))


def test_open_statuses():
    assert InvoiceStatus.unpaid in status_resolver.OPEN_STATUSES
    assert InvoiceStatus.paid not in status_resolver.OPEN_STATUSES


def test_status_formula_reference_points():
    total = Decimal("1000")
    assert compute_status(Decimal("0"), total) == InvoiceStatus.unpaid
    assert compute_status(Decimal("400"), total) == InvoiceStatus.partially_paid
    assert compute_status(Decimal("1000"), total) == InvoiceStatus.paid
    assert compute_status(Decimal("1000.01"), total) == InvoiceStatus.paid
