from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from productsaas.database.connection import get_db
from productsaas.services.checkout import (
    apply_coupon,
    create_query,
    get_checkout_product,
    get_storefront,
    submit_checkout,
)
from productsaas.services.pricing import Quote
from productsaas.schemas.checkout import CheckoutQuote, CheckoutRequest, CheckoutResponse, CouponApplyRequest, StorefrontResponse
from productsaas.schemas.order import OrderResponse
from productsaas.schemas.product import ProductResponse
from productsaas.schemas.query import QueryCreate, QueryResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _quote_response(quote: Quote, redemption_token: Optional[str] = None) -> CheckoutQuote:
    return CheckoutQuote(
        unit_price=quote.unit_price,
        quantity=quote.quantity,
        subtotal=quote.subtotal,
        discount=quote.discount,
        total=quote.total,
        currency=quote.currency,
        coupon_code=quote.coupon.code if quote.coupon is not None else None,
        redemption_token=redemption_token
    )

@router.get("/{username}", response_model=StorefrontResponse)
def get_store(username: str, db: Session = Depends(get_db)):
    """A seller's public storefront: their active products, newest first"""
    seller, products = get_storefront(db, username)
    return StorefrontResponse(
        username=seller.username,
        products=[ProductResponse.from_orm(product) for product in products]
    )

@router.get("/{username}/checkout/{product_slug}", response_model=ProductResponse)
def get_checkout(username: str, product_slug: str, db: Session = Depends(get_db)):
    return ProductResponse.from_orm(get_checkout_product(db, username, product_slug))

@router.post("/{username}/checkout/{product_slug}/coupon", response_model=CheckoutQuote)
def apply_checkout_coupon(
    username: str,
    product_slug: str,
    data: CouponApplyRequest,
    db: Session = Depends(get_db)
):
    """Quote the checkout with a coupon applied"""
    product = get_checkout_product(db, username, product_slug)
    quote, redemption_token = apply_coupon(db, product, data.code, data.quantity)
    return _quote_response(quote, redemption_token)

@router.post(
    "/{username}/checkout/{product_slug}",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED
)
def checkout(
    username: str,
    product_slug: str,
    data: CheckoutRequest,
    db: Session = Depends(get_db)
):
    """Place an order and get the URL the buyer goes to next (PayPal, or the success page for free orders)"""
    product = get_checkout_product(db, username, product_slug)
    order, quote, payment_url = submit_checkout(db, product, data)
    return CheckoutResponse(
        order=OrderResponse.from_orm(order),
        quote=_quote_response(quote),
        payment_url=payment_url
    )

@router.post("/{username}/queries", response_model=QueryResponse, status_code=status.HTTP_201_CREATED)
def send_query(username: str, data: QueryCreate, db: Session = Depends(get_db)):
    """A buyer contacts the seller"""
    return QueryResponse.from_orm(create_query(db, username, data))
