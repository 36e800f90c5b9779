import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric, Text, Integer, Enum, JSON
from productsaas.database.base import Base
import enum

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"

class Order(Base):
    """An order is a snapshot of the product at checkout time, not a live reference."""
    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    seller_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(String, nullable=True, index=True)
    product_title = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    coupon_id = Column(String, nullable=True)
    coupon_code = Column(String(50), nullable=True)
    # jti of the redemption token that paid for the coupon use, if any
    coupon_redemption_id = Column(String(64), nullable=True, unique=True)

    customer_email = Column(String, nullable=False, index=True)
    customer_name = Column(String, nullable=True)
    customer_phone = Column(String(30), nullable=True)

    payment_method = Column(String(20), nullable=False, default="paypal")
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, index=True)
    order_status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, index=True)
    paypal_txn_id = Column(String(64), nullable=True)

    customer_notes = Column(Text, nullable=True)
    seller_notes = Column(Text, nullable=True)
    custom_field_data = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
