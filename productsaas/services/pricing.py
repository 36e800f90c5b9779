"""
Checkout arithmetic.

All amounts are Decimals and are kept exact: 20% off 99.98 is 19.996, not
20.00. Rounding to cents happens only where an amount leaves the system
(stored order totals, the PayPal redirect, display) via `to_money`.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple, Optional, Union

from productsaas.core.exceptions import ValidationError
from productsaas.models.coupon import Coupon, DiscountType

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

Number = Union[Decimal, int, str]


class Quote(NamedTuple):
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    currency: str
    coupon: Optional[Coupon] = None


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # repr() keeps 49.99 as 49.99 instead of its binary expansion
        return Decimal(repr(value))
    return Decimal(value)


def to_money(amount: Number) -> Decimal:
    """Round to two decimals, half up."""
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(amount: Number) -> str:
    return f"{to_money(amount):.2f}"


def calculate_subtotal(unit_price: Number, quantity: int) -> Decimal:
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1", field="quantity")
    price = to_decimal(unit_price)
    if price < ZERO:
        raise ValidationError("Price cannot be negative", field="price")
    return price * quantity


def calculate_discount(subtotal: Decimal, discount_type: DiscountType, discount_value: Number) -> Decimal:
    value = to_decimal(discount_value)
    if discount_type == DiscountType.PERCENTAGE:
        return subtotal * (value / HUNDRED)
    # Fixed discounts never take the total below zero
    return min(value, subtotal)


def build_quote(unit_price: Number, quantity: int, currency: str,
                coupon: Optional[Coupon] = None) -> Quote:
    subtotal = calculate_subtotal(unit_price, quantity)
    discount = ZERO
    if coupon is not None:
        discount = calculate_discount(subtotal, coupon.discount_type, coupon.discount_value)

    return Quote(
        unit_price=to_decimal(unit_price),
        quantity=quantity,
        subtotal=subtotal,
        discount=discount,
        total=subtotal - discount,
        currency=currency,
        coupon=coupon
    )
