from pydantic import BaseModel, EmailStr, Field, validator
from typing import Dict, List, Optional
from decimal import Decimal
from productsaas.schemas.order import OrderResponse
from productsaas.schemas.product import ProductResponse


class CouponApplyRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    quantity: int = Field(1, ge=1)

    @validator('code')
    def normalize_code(cls, v):
        return v.strip().upper()


class CheckoutQuote(BaseModel):
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    currency: str
    coupon_code: Optional[str] = None
    # Returned by the coupon apply endpoint; send it back with the checkout
    redemption_token: Optional[str] = None


class CheckoutRequest(BaseModel):
    """What the buyer submits on the checkout page."""
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    quantity: int = Field(1, ge=1)
    notes: Optional[str] = Field(None, max_length=2000)
    coupon_code: Optional[str] = Field(None, max_length=50)
    coupon_token: Optional[str] = Field(None, max_length=1000)
    custom_fields: Dict[str, str] = {}

    @validator('email', 'first_name', 'last_name', 'phone', 'notes', 'coupon_code', 'coupon_token', pre=True)
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @validator('coupon_code')
    def normalize_coupon(cls, v):
        return v.upper() if v else v


class CheckoutResponse(BaseModel):
    order: OrderResponse
    quote: CheckoutQuote
    payment_url: str


class StorefrontResponse(BaseModel):
    username: str
    products: List[ProductResponse]
