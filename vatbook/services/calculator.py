"""
Invoice and expense arithmetic.

Every figure is a Decimal rounded to the minor unit (0.01) at the point it is
derived, so a subtotal is the sum of already-rounded line totals and the VAT
is rounded before it is added to the total. Nothing here is cached; callers
recompute from the current line items every time.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, List, Mapping, NamedTuple, Optional

from vatbook.core.exceptions import InvalidAmount

# Nigerian VAT rate; settings.VAT_RATE overrides it for other jurisdictions
VAT_RATE = Decimal("0.075")

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

COERCE = "coerce"
REJECT = "reject"


class InvoiceTotals(NamedTuple):
    subtotal: Decimal
    vat: Decimal
    total: Decimal


class ExpenseTotals(NamedTuple):
    vat: Decimal
    total: Decimal


def round2(value) -> Decimal:
    """Quantize to kobo, half-up."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_amount(value, policy: str = COERCE, field: str = "amount") -> Decimal:
    """
    Turn form/JSON input into a non-negative Decimal.

    With the `coerce` policy anything unusable (None, "", "abc", NaN,
    infinity, negatives) becomes 0. With `reject` the same inputs raise
    InvalidAmount; None and "" still count as 0.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return ZERO
    if isinstance(value, bool):
        value = int(value)

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        if policy == REJECT:
            raise InvalidAmount(f"{field} is not a number: {value!r}")
        return ZERO

    if not amount.is_finite():
        if policy == REJECT:
            raise InvalidAmount(f"{field} must be finite, got {value!r}")
        return ZERO
    if amount < 0:
        if policy == REJECT:
            raise InvalidAmount(f"{field} cannot be negative, got {value!r}")
        return ZERO
    return amount


def _rate(vat_rate) -> Decimal:
    if vat_rate is None:
        return VAT_RATE
    rate = Decimal(str(vat_rate))
    if not rate.is_finite() or rate < 0:
        raise InvalidAmount(f"VAT rate must be a non-negative number, got {vat_rate!r}")
    return rate


def compute_vat(amount, apply_vat: bool, vat_rate=None) -> Decimal:
    if not apply_vat:
        return ZERO
    return round2(round2(amount) * _rate(vat_rate))


def compute_line_total(quantity, unit_price, policy: str = COERCE) -> Decimal:
    """quantity x unit_price, rounded to kobo."""
    q = to_amount(quantity, policy, field="quantity")
    p = to_amount(unit_price, policy, field="unit_price")
    return round2(q * p)


def _field(item, name):
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def price_line_items(line_items: Iterable, policy: str = COERCE) -> List[dict]:
    """
    Return the line items as plain dicts with line_total recomputed from
    quantity and unit price. Any incoming line_total is ignored.
    """
    priced = []
    for item in line_items or []:
        quantity = to_amount(_field(item, "quantity"), policy, field="quantity")
        unit_price = to_amount(_field(item, "unit_price"), policy, field="unit_price")
        priced.append({
            "description": _field(item, "description") or "",
            "quantity": quantity,
            "unit_price": unit_price,
            "line_total": round2(quantity * unit_price),
        })
    return priced


def compute_invoice_totals(
    line_items: Iterable,
    apply_vat: bool,
    vat_rate=None,
    policy: str = COERCE,
) -> InvoiceTotals:
    """
    subtotal = sum of line totals
    vat      = subtotal x rate when apply_vat, else 0
    total    = subtotal + vat
    """
    subtotal = sum(
        (item["line_total"] for item in price_line_items(line_items, policy)),
        ZERO,
    )
    subtotal = round2(subtotal)
    vat = compute_vat(subtotal, apply_vat, vat_rate)
    return InvoiceTotals(subtotal=subtotal, vat=vat, total=round2(subtotal + vat))


def compute_expense_totals(
    amount,
    apply_vat: bool,
    vat_rate=None,
    policy: str = COERCE,
) -> ExpenseTotals:
    base = round2(to_amount(amount, policy))
    vat = compute_vat(base, apply_vat, vat_rate)
    return ExpenseTotals(vat=vat, total=round2(base + vat))


def outstanding(total_amount, amount_paid) -> Decimal:
    """Amount still owed on an invoice; negative when over-paid."""
    return round2(round2(total_amount or 0) - round2(amount_paid or 0))
