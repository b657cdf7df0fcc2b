from decimal import Decimal

import pytest

from vatbook.core.exceptions import InvalidAmount
from vatbook.services import calculator
from vatbook.services.calculator import (
    REJECT,
    compute_expense_totals,
    compute_invoice_totals,
    compute_line_total,
    compute_vat,
    outstanding,
    price_line_items,
    round2,
    to_amount,
)


def test_invoice_totals_with_vat():
    items = [
        {"description": "Design", "quantity": 2, "unit_price": "1500.00"},
        {"description": "Hosting", "quantity": "1", "unit_price": 999.99},
    ]
    totals = compute_invoice_totals(items, apply_vat=True)

    assert totals.subtotal == Decimal("3999.99")
    assert totals.vat == Decimal("300.00")
    assert totals.total == Decimal("4299.99")


def test_invoice_totals_without_vat():
    totals = compute_invoice_totals([{"quantity": 3, "unit_price": "10.10"}], apply_vat=False)
    assert totals.subtotal == Decimal("30.30")
    assert totals.vat == Decimal("0.00")
    assert totals.total == totals.subtotal


def test_total_is_subtotal_plus_vat():
    items = [{"quantity": q, "unit_price": p} for q, p in [(1, "0.07"), (3, "33.33"), (7, "2.49")]]
    for apply_vat in (True, False):
        totals = compute_invoice_totals(items, apply_vat)
        assert totals.total == totals.subtotal + totals.vat


def test_vat_rounds_half_up():
    # 0.075 * 10.00 = 0.75, 0.075 * 0.20 = 0.015 -> 0.02
    assert compute_vat(Decimal("10.00"), True) == Decimal("0.75")
    assert compute_vat(Decimal("0.20"), True) == Decimal("0.02")
    assert compute_vat(Decimal("0.20"), False) == Decimal("0.00")


def test_vat_uses_given_rate():
    assert compute_vat(Decimal("100"), True, vat_rate="0.2") == Decimal("20.00")


def test_negative_vat_rate_rejected():
    with pytest.raises(InvalidAmount):
        compute_vat(Decimal("100"), True, vat_rate="-0.1")


def test_empty_line_items_give_zero_totals():
    totals = compute_invoice_totals([], apply_vat=True)
    assert totals == (Decimal("0.00"), Decimal("0.00"), Decimal("0.00"))


def test_incoming_line_total_is_ignored():
    priced = price_line_items([{"description": "x", "quantity": 2, "unit_price": 5, "line_total": 999}])
    assert priced[0]["line_total"] == Decimal("10.00")


def test_line_total_is_rounded():
    assert compute_line_total("3", "0.335") == Decimal("1.01")


@pytest.mark.parametrize("value", [None, "", "abc", "NaN", "Infinity", "-5", -1])
def test_coerce_turns_bad_input_into_zero(value):
    assert to_amount(value) == Decimal("0")


@pytest.mark.parametrize("value", ["abc", "NaN", "-Infinity", "-0.01", -3])
def test_reject_raises_on_bad_input(value):
    with pytest.raises(InvalidAmount):
        to_amount(value, policy=REJECT)


def test_reject_still_treats_missing_as_zero():
    assert to_amount(None, policy=REJECT) == Decimal("0")
    assert to_amount("  ", policy=REJECT) == Decimal("0")


def test_invalid_line_coerced_to_zero_total():
    totals = compute_invoice_totals(
        [{"quantity": "two", "unit_price": 100}, {"quantity": 1, "unit_price": "50"}],
        apply_vat=False,
    )
    assert totals.subtotal == Decimal("50.00")


def test_invalid_line_rejected_under_reject_policy():
    with pytest.raises(InvalidAmount):
        compute_invoice_totals([{"quantity": -1, "unit_price": 100}], True, policy=REJECT)


def test_line_items_accept_objects():
    class Line:
        description = "Obj"
        quantity = Decimal("4")
        unit_price = Decimal("2.50")

    totals = compute_invoice_totals([Line()], apply_vat=False)
    assert totals.subtotal == Decimal("10.00")


def test_expense_totals():
    totals = compute_expense_totals("200.00", apply_vat=True)
    assert totals.vat == Decimal("15.00")
    assert totals.total == Decimal("215.00")

    totals = compute_expense_totals(200, apply_vat=False)
    assert totals.vat == Decimal("0.00")
    assert totals.total == Decimal("200.00")


def test_outstanding_can_go_negative():
    assert outstanding(Decimal("100.00"), Decimal("40.00")) == Decimal("60.00")
    assert outstanding(Decimal("100.00"), Decimal("120.00")) == Decimal("-20.00")
    assert outstanding(None, None) == Decimal("0.00")


def test_round2_accepts_floats_without_binary_noise():
    assert round2(1.005) == Decimal("1.01")
    assert round2(2.675) == Decimal("2.68")


def test_default_rate_is_seven_and_a_half_percent():
    assert calculator.VAT_RATE == Decimal("0.075")


def test_two_line_invoice_with_vat():
    totals = compute_invoice_totals(
        [{"quantity": 2, "unit_price": 500}, {"quantity": 1, "unit_price": 1500}],
        apply_vat=True,
    )
    assert totals.subtotal == Decimal("2500.00")
    assert totals.vat == Decimal("187.50")
    assert totals.total == Decimal("2687.50")


def test_totals_are_idempotent():
    items = [{"quantity": "1.5", "unit_price": "333.33"}, {"quantity": 4, "unit_price": "0.99"}]
    first = compute_invoice_totals(items, True)
    second = compute_invoice_totals(items, True)
    assert first == second


@pytest.mark.parametrize(
    "quantity, unit_price",
    [(0, "10"), (1, "0.01"), ("2.5", "40"), (12, "1234.56"), ("0.333", "3")],
)
def test_line_totals_sum_to_subtotal(quantity, unit_price):
    line = compute_line_total(quantity, unit_price)
    assert line == round2(Decimal(str(quantity)) * Decimal(unit_price))

    totals = compute_invoice_totals([{"quantity": quantity, "unit_price": unit_price}], True)
    assert totals.subtotal == line
    assert totals.vat == round2(line * Decimal("0.075"))
