from decimal import Decimal
from typing import List, Optional
from sqlalchemy import desc, func
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from productsaas.models.order import Order, OrderStatus, PaymentStatus
from productsaas.schemas.order import OrderUpdate, OrderStats
from productsaas.services.pricing import to_money
from productsaas.core.exceptions import RemoteStoreError, ResourceNotFoundError
import logging

logger = logging.getLogger(__name__)

def get_orders(db: Session, seller_id: str, order_status: Optional[OrderStatus] = None) -> List[Order]:
    """All orders of a seller, newest first, optionally filtered by order status"""
    query = db.query(Order).filter(Order.seller_id == seller_id)
    if order_status is not None:
        query = query.filter(Order.order_status == order_status)
    return query.order_by(desc(Order.created_at)).all()

def get_order_by_id(db: Session, order_id: str) -> Optional[Order]:
    return db.query(Order).filter(Order.id == order_id).first()

def get_seller_order(db: Session, order_id: str, seller_id: str) -> Order:
    order = db.query(Order).filter(Order.id == order_id, Order.seller_id == seller_id).first()
    if not order:
        raise ResourceNotFoundError("Order", order_id)
    return order

def _save(db: Session, order: Order, operation: str) -> Order:
    try:
        db.commit()
        db.refresh(order)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error on {operation}: {str(e)}")
        raise RemoteStoreError(operation)
    return order

def update_order(db: Session, order_id: str, order_data: OrderUpdate, seller_id: str) -> Order:
    order = get_seller_order(db, order_id, seller_id)

    for field, value in order_data.dict(exclude_unset=True).items():
        if value is None and field in ("order_status", "payment_status", "customer_email"):
            continue
        setattr(order, field, value)

    _save(db, order, "update order")
    logger.info(f"Order updated: {order.id} by seller {seller_id}")
    return order

def update_order_status(db: Session, order_id: str, status: OrderStatus, seller_id: str) -> Order:
    order = get_seller_order(db, order_id, seller_id)
    order.order_status = status
    _save(db, order, "update order status")
    logger.info(f"Order {order.id} status changed to {status.value}")
    return order

def update_payment_status(db: Session, order_id: str, status: PaymentStatus, seller_id: str) -> Order:
    order = get_seller_order(db, order_id, seller_id)
    order.payment_status = status
    _save(db, order, "update payment status")
    logger.info(f"Order {order.id} payment status changed to {status.value}")
    return order

def delete_order(db: Session, order_id: str, seller_id: str) -> None:
    order = get_seller_order(db, order_id, seller_id)
    try:
        db.delete(order)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting order: {str(e)}")
        raise RemoteStoreError("delete order")
    logger.info(f"Order deleted: {order_id} by seller {seller_id}")

def get_order_stats(db: Session, seller_id: str) -> OrderStats:
    counts = dict(
        db.query(Order.order_status, func.count(Order.id))
        .filter(Order.seller_id == seller_id)
        .group_by(Order.order_status)
        .all()
    )
    total_revenue = db.query(func.coalesce(func.sum(Order.total_amount), 0)).filter(
        Order.seller_id == seller_id,
        Order.payment_status == PaymentStatus.PAID
    ).scalar()
    pending_payments = db.query(Order).filter(
        Order.seller_id == seller_id,
        Order.payment_status == PaymentStatus.PENDING
    ).count()

    return OrderStats(
        total=sum(counts.values()),
        pending=counts.get(OrderStatus.PENDING, 0),
        processing=counts.get(OrderStatus.PROCESSING, 0),
        shipped=counts.get(OrderStatus.SHIPPED, 0),
        delivered=counts.get(OrderStatus.DELIVERED, 0),
        cancelled=counts.get(OrderStatus.CANCELLED, 0),
        total_revenue=to_money(Decimal(str(total_revenue))),
        pending_payments=pending_payments
    )
