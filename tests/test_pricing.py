from decimal import Decimal

import pytest

from productsaas.core.exceptions import ValidationError
from productsaas.core.slug import slugify
from productsaas.models.coupon import Coupon, DiscountType
from productsaas.services.pricing import (
    build_quote,
    calculate_discount,
    calculate_subtotal,
    format_amount,
    to_money,
)


def percentage(value):
    return Coupon(code="PCT", discount_type=DiscountType.PERCENTAGE, discount_value=Decimal(value))


def fixed(value):
    return Coupon(code="FIX", discount_type=DiscountType.FIXED, discount_value=Decimal(value))


def test_subtotal_is_exact():
    assert calculate_subtotal(Decimal("49.99"), 2) == Decimal("99.98")
    assert calculate_subtotal(Decimal("0.10"), 3) == Decimal("0.30")
    assert calculate_subtotal(49.99, 3) == Decimal("149.97")


def test_subtotal_rejects_bad_input():
    with pytest.raises(ValidationError):
        calculate_subtotal(Decimal("10"), 0)
    with pytest.raises(ValidationError):
        calculate_subtotal(Decimal("-1"), 1)


def test_percentage_coupon_keeps_fractional_cents():
    quote = build_quote(Decimal("49.99"), 2, "USD", percentage("20"))

    assert quote.subtotal == Decimal("99.98")
    assert quote.discount == Decimal("19.996")
    assert quote.total == Decimal("79.984")
    assert format_amount(quote.total) == "79.98"


def test_fixed_coupon_is_capped_at_subtotal():
    quote = build_quote(Decimal("10.00"), 1, "USD", fixed("15"))

    assert quote.discount == Decimal("10.00")
    assert quote.total == Decimal("0")
    assert format_amount(quote.total) == "0.00"


def test_fixed_coupon_below_subtotal():
    assert calculate_discount(Decimal("30.00"), DiscountType.FIXED, Decimal("5")) == Decimal("5")


@pytest.mark.parametrize("value", ["0", "12.5", "33", "100"])
def test_percentage_total_is_subtotal_minus_discount(value):
    quote = build_quote(Decimal("19.99"), 3, "EUR", percentage(value))

    assert quote.discount == quote.subtotal * Decimal(value) / 100
    assert quote.total == quote.subtotal - quote.discount
    assert quote.total >= 0


def test_quote_without_coupon():
    quote = build_quote(Decimal("5.00"), 4, "GBP")

    assert quote.discount == 0
    assert quote.total == Decimal("20.00")
    assert quote.currency == "GBP"
    assert quote.coupon is None


def test_to_money_rounds_half_up():
    assert to_money(Decimal("0.005")) == Decimal("0.01")
    assert to_money(Decimal("2.675")) == Decimal("2.68")
    assert to_money("79.984") == Decimal("79.98")


@pytest.mark.parametrize("title, slug", [
    ("Logo Design Pack", "logo-design-pack"),
    ("Ebook: Python 101!", "ebook-python-101"),
    ("Multi   space -- dash", "multi-space-dash"),
    ("UPPER_case", "uppercase"),
])
def test_slugify(title, slug):
    assert slugify(title) == slug
