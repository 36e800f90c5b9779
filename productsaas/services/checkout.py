"""
Public storefront: product lookup, coupon quotes, order submission and
support queries sent by buyers.
"""
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from productsaas.models.coupon import Coupon
from productsaas.models.order import Order, OrderStatus, PaymentStatus
from productsaas.models.product import Product
from productsaas.models.query import SupportQuery, QueryStatus
from productsaas.models.user import User
from productsaas.schemas.checkout import CheckoutRequest
from productsaas.schemas.query import QueryCreate
from productsaas.services.auth import (
    create_coupon_redemption_token,
    get_user_by_username,
    read_coupon_redemption_token,
)
from productsaas.services.coupon import increment_coupon_usage, validate_coupon
from productsaas.services.customer import record_order
from productsaas.services.paypal import build_paypal_url, payment_return_url
from productsaas.services.pricing import ZERO, Quote, build_quote, calculate_subtotal, to_money
from productsaas.services.product import find_active_product_by_slug, get_products_by_seller
from productsaas.services.settings import get_paypal_email
from productsaas.core.config import settings
from productsaas.core.exceptions import (
    InvalidCouponError,
    PaymentNotConfiguredError,
    RemoteStoreError,
    ResourceNotFoundError,
    ValidationError,
)
import logging

logger = logging.getLogger(__name__)

def get_seller(db: Session, username: str) -> User:
    seller = get_user_by_username(db, username.lower())
    if seller is None or not seller.is_active:
        raise ResourceNotFoundError("Store", username)
    return seller

def get_storefront(db: Session, username: str) -> Tuple[User, List[Product]]:
    """The seller and their active products, newest first"""
    seller = get_seller(db, username)
    return seller, get_products_by_seller(db, seller.id, active_only=True)

def get_checkout_product(db: Session, username: str, product_slug: str) -> Product:
    seller = get_seller(db, username)
    return find_active_product_by_slug(db, seller.id, product_slug)

def _redeem_on_apply() -> bool:
    return settings.COUPON_REDEEM_ON != "payment"

def apply_coupon(db: Session, product: Product, code: str, quantity: int) -> Tuple[Quote, Optional[str]]:
    """
    Quote the product with a coupon applied. When coupons are redeemed on
    apply, the use is counted here whether or not the buyer goes on to pay,
    and the returned redemption token lets the submit reuse that use.
    """
    subtotal = calculate_subtotal(product.price, quantity)
    coupon = validate_coupon(db, product.seller_id, code, subtotal)

    redemption_token = None
    if _redeem_on_apply():
        if not increment_coupon_usage(db, coupon.id):
            raise InvalidCouponError("Coupon usage limit reached")
        db.refresh(coupon)
        redemption_token = create_coupon_redemption_token(coupon.id, product.id)

    logger.info(f"Coupon {coupon.code} applied to product {product.id}")
    return build_quote(product.price, quantity, product.currency, coupon), redemption_token

def validate_required_fields(product: Product, checkout: CheckoutRequest) -> None:
    """
    Products with custom fields need every required custom field answered;
    products without them need email, first name and last name instead.
    """
    if product.custom_fields:
        for field in product.custom_fields:
            if not field.get("required"):
                continue
            answer = checkout.custom_fields.get(field.get("name", ""))
            if answer is None or not str(answer).strip():
                raise ValidationError(
                    f"Please fill in the required field: {field.get('name')}",
                    field=field.get("name")
                )
        return

    for name in ("email", "first_name", "last_name"):
        if not getattr(checkout, name):
            raise ValidationError("Please fill in all required customer information", field=name)

def _customer_email(product: Product, checkout: CheckoutRequest) -> str:
    """The buyer's email, or "" when a custom-field checkout never asked for one."""
    if checkout.email:
        return checkout.email.lower()
    for field in product.custom_fields or []:
        if field.get("type") == "email":
            return (checkout.custom_fields.get(field.get("name", "")) or "").strip().lower()
    return ""

def _customer_name(checkout: CheckoutRequest) -> str:
    name = " ".join(part for part in (checkout.first_name, checkout.last_name) if part)
    return name or "Customer"

def _unspent_redemption(db: Session, coupon: Coupon, product: Product, token: Optional[str]) -> Optional[str]:
    """The id of a redemption token issued by apply for this coupon and product, if no order used it yet."""
    if not token:
        return None
    claims = read_coupon_redemption_token(token)
    if not claims or claims.get("sub") != coupon.id or claims.get("product") != product.id:
        logger.warning(f"Ignoring redemption token that does not match coupon {coupon.code}")
        return None
    if db.query(Order.id).filter(Order.coupon_redemption_id == claims.get("jti")).first():
        logger.warning(f"Redemption token for coupon {coupon.code} was already used")
        return None
    return claims.get("jti")

def _checkout_coupon(db: Session, product: Product,
                     checkout: CheckoutRequest) -> Tuple[Optional[Coupon], Optional[str]]:
    if not checkout.coupon_code:
        return None, None
    subtotal = calculate_subtotal(product.price, checkout.quantity)
    coupon = validate_coupon(db, product.seller_id, checkout.coupon_code, subtotal, enforce_usage_limit=False)

    redemption_id = None
    if _redeem_on_apply():
        redemption_id = _unspent_redemption(db, coupon, product, checkout.coupon_token)

    # Without a redemption from apply, this submit takes a use of its own
    if redemption_id is None and coupon.max_uses is not None and coupon.current_uses >= coupon.max_uses:
        raise InvalidCouponError("Coupon usage limit reached")
    return coupon, redemption_id

def submit_checkout(db: Session, product: Product, checkout: CheckoutRequest) -> Tuple[Order, Quote, str]:
    """
    Create an order for the product and the URL the buyer goes to next:
    PayPal for the payment, or straight to the success page when the
    coupon made the order free. Nothing is written unless every check passes.
    """
    validate_required_fields(product, checkout)

    paypal_email = get_paypal_email(db, product.seller_id)
    if not paypal_email:
        raise PaymentNotConfiguredError()

    coupon, redemption_id = _checkout_coupon(db, product, checkout)
    quote = build_quote(product.price, checkout.quantity, product.currency, coupon)
    total = to_money(quote.total)
    # PayPal does not take 0.00 payments
    settled = total == ZERO
    count_use = coupon is not None and redemption_id is None and (_redeem_on_apply() or settled)

    order = Order(
        seller_id=product.seller_id,
        product_id=product.id,
        product_title=product.title,
        quantity=quote.quantity,
        unit_price=quote.unit_price,
        subtotal=to_money(quote.subtotal),
        discount_amount=to_money(quote.discount),
        total_amount=total,
        currency=quote.currency,
        coupon_id=coupon.id if coupon else None,
        coupon_code=coupon.code if coupon else None,
        coupon_redemption_id=redemption_id,
        customer_email=_customer_email(product, checkout),
        customer_name=_customer_name(checkout),
        customer_phone=checkout.phone,
        payment_method="coupon" if settled else "paypal",
        payment_status=PaymentStatus.PAID if settled else PaymentStatus.PENDING,
        order_status=OrderStatus.PENDING,
        customer_notes=checkout.notes,
        custom_field_data=dict(checkout.custom_fields)
    )

    try:
        if count_use and not increment_coupon_usage(db, coupon.id, commit=False):
            db.rollback()
            raise InvalidCouponError("Coupon usage limit reached")
        db.add(order)
        db.flush()
        record_order(db, order)
        db.commit()
        db.refresh(order)
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Order for product {product.id} rejected: {str(e)}")
        raise InvalidCouponError("This coupon was already used for another order")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating order for product {product.id}: {str(e)}")
        raise RemoteStoreError("create order")

    if settled:
        logger.info(f"Order {order.id} fully covered by coupon {order.coupon_code}, no payment needed")
        return order, quote, payment_return_url(order)

    logger.info(f"Order {order.id} created for {order.customer_email or 'buyer'}: {order.total_amount} {order.currency}")
    return order, quote, build_paypal_url(paypal_email, order)

def create_query(db: Session, username: str, query_data: QueryCreate) -> SupportQuery:
    """A buyer opens a support query with a seller"""
    seller = get_seller(db, username)
    query = SupportQuery(
        seller_id=seller.id,
        customer_email=query_data.customer_email.lower(),
        customer_name=query_data.customer_name,
        subject=query_data.subject,
        message=query_data.message,
        priority=query_data.priority,
        category=query_data.category,
        status=QueryStatus.OPEN
    )

    try:
        db.add(query)
        db.commit()
        db.refresh(query)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating query: {str(e)}")
        raise RemoteStoreError("create query")

    logger.info(f"Query {query.id} opened with seller {seller.id}")
    return query
