from pydantic import BaseModel, EmailStr, Field
from typing import Dict, Optional
from datetime import datetime
from decimal import Decimal
from productsaas.models.order import OrderStatus, PaymentStatus


class OrderResponse(BaseModel):
    id: str
    seller_id: str
    product_id: Optional[str]
    product_title: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    currency: str
    coupon_code: Optional[str]
    customer_email: str
    customer_name: Optional[str]
    customer_phone: Optional[str]
    payment_method: str
    payment_status: PaymentStatus
    order_status: OrderStatus
    customer_notes: Optional[str]
    seller_notes: Optional[str]
    custom_field_data: Dict[str, str] = {}
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderUpdate(BaseModel):
    order_status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    customer_name: Optional[str] = Field(None, max_length=200)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = Field(None, max_length=30)
    customer_notes: Optional[str] = None
    seller_notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    order_status: OrderStatus


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus


class OrderStats(BaseModel):
    total: int
    pending: int
    processing: int
    shipped: int
    delivered: int
    cancelled: int
    total_revenue: Decimal
    pending_payments: int
