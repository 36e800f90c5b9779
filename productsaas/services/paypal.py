"""
PayPal Standard integration: the checkout redirect and the IPN receiver.
"""
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlencode
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import httpx
import logging

from productsaas.core.config import settings
from productsaas.core.exceptions import ExternalServiceError, RemoteStoreError
from productsaas.models.order import Order, PaymentStatus
from productsaas.services.coupon import increment_coupon_usage
from productsaas.services.order import get_order_by_id
from productsaas.services.pricing import format_amount, to_decimal, to_money
from productsaas.services.settings import get_paypal_email

logger = logging.getLogger(__name__)

IPN_STATUS_MAP = {
    "Completed": PaymentStatus.PAID,
    "Failed": PaymentStatus.FAILED,
    "Denied": PaymentStatus.FAILED,
    "Refunded": PaymentStatus.REFUNDED,
    "Reversed": PaymentStatus.REFUNDED,
}


def payment_return_url(order: Order, outcome: str = "success") -> str:
    return f"{settings.FRONTEND_BASE_URL}/payment/{outcome}?order_id={order.id}"


def build_paypal_url(paypal_email: str, order: Order) -> str:
    """Redirect URL for a PayPal "Buy Now" payment of `order`. Same order, same URL."""
    params = [
        ("cmd", "_xclick"),
        ("business", paypal_email),
        ("item_name", order.product_title),
        ("item_number", order.id or "N/A"),
        ("amount", format_amount(order.total_amount)),
        ("currency_code", order.currency),
        ("return", payment_return_url(order)),
        ("cancel_return", payment_return_url(order, "cancel")),
        ("notify_url", f"{settings.BACKEND_BASE_URL}/api/paypal/ipn"),
        ("custom", order.id or ""),
        ("no_shipping", "1"),
        ("no_note", "1"),
    ]
    return f"{settings.PAYPAL_CHECKOUT_URL}?{urlencode(params)}"


async def verify_ipn(fields: Sequence[Tuple[str, str]]) -> bool:
    """
    Post the notification back to PayPal unchanged, prefixed with
    cmd=_notify-validate. PayPal answers VERIFIED or INVALID.
    """
    body = urlencode([("cmd", "_notify-validate")] + list(fields))
    try:
        async with httpx.AsyncClient(timeout=settings.PAYPAL_TIMEOUT_SECONDS) as client:
            resp = await client.post(
                settings.PAYPAL_VERIFY_URL,
                content=body,
                headers={"Content-Type": "application/x-www-form-urlencoded"}
            )
    except httpx.HTTPError as e:
        logger.error(f"IPN verification request failed: {str(e)}")
        raise ExternalServiceError("paypal", "IPN verification request failed")

    if resp.status_code != 200:
        logger.error(f"IPN verification returned HTTP {resp.status_code}")
        raise ExternalServiceError("paypal", f"IPN verification returned HTTP {resp.status_code}")

    return resp.text.strip() == "VERIFIED"


def _amount_matches(order: Order, fields: dict) -> bool:
    gross = fields.get("mc_gross")
    if not gross:
        return False
    try:
        return to_money(to_decimal(gross)) == to_money(order.total_amount)
    except ArithmeticError:
        return False


def apply_ipn(db: Session, fields: dict) -> Optional[Order]:
    """
    Apply an already verified notification to its order. Returns the order
    when its payment status changed, None when the notification was ignored.
    """
    order_id = fields.get("custom") or fields.get("item_number")
    if not order_id:
        logger.warning("IPN without an order reference ignored")
        return None

    order = get_order_by_id(db, order_id)
    if order is None:
        logger.warning(f"IPN for unknown order {order_id} ignored")
        return None

    new_status = IPN_STATUS_MAP.get(fields.get("payment_status", ""))
    if new_status is None:
        logger.info(f"IPN status {fields.get('payment_status')!r} for order {order.id} needs no action")
        return None

    seller_email = get_paypal_email(db, order.seller_id)
    receiver = (fields.get("receiver_email") or fields.get("business") or "").strip().lower()
    if not seller_email or receiver != seller_email.strip().lower():
        logger.warning(f"IPN for order {order.id} was paid to {receiver!r}, not the seller's account")
        return None

    if new_status == PaymentStatus.PAID:
        if order.payment_status == PaymentStatus.PAID:
            logger.info(f"Duplicate completion IPN for order {order.id}")
            return None
        if fields.get("mc_currency") != order.currency or not _amount_matches(order, fields):
            logger.warning(
                f"IPN amount {fields.get('mc_gross')} {fields.get('mc_currency')} does not match "
                f"order {order.id} ({order.total_amount} {order.currency})"
            )
            return None

    try:
        order.payment_status = new_status
        if fields.get("txn_id"):
            order.paypal_txn_id = fields["txn_id"]

        if new_status == PaymentStatus.PAID and order.coupon_id and settings.COUPON_REDEEM_ON == "payment":
            if not increment_coupon_usage(db, order.coupon_id, commit=False):
                logger.warning(f"Order {order.id} was paid after coupon {order.coupon_code} ran out of uses")

        db.commit()
        db.refresh(order)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error applying IPN to order {order.id}: {str(e)}")
        raise RemoteStoreError("update order payment status")

    logger.info(f"Order {order.id} payment status set to {new_status.value} by PayPal IPN")
    return order


async def handle_ipn(db: Session, fields: List[Tuple[str, str]]) -> Optional[Order]:
    """Verify an IPN with PayPal (unless disabled) and apply it."""
    if settings.PAYPAL_VERIFY_IPN and not await verify_ipn(fields):
        logger.warning("IPN rejected by PayPal verification")
        return None
    return apply_ipn(db, dict(fields))
