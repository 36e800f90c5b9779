from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from productsaas.database.connection import get_db
from productsaas.models.order import OrderStatus
from productsaas.services.order import (
    delete_order,
    get_order_stats,
    get_orders,
    get_seller_order,
    update_order,
    update_order_status,
    update_payment_status,
)
from productsaas.schemas.order import (
    OrderResponse,
    OrderStats,
    OrderStatusUpdate,
    OrderUpdate,
    PaymentStatusUpdate,
)
from productsaas.schemas.user import AuthContext, MessageResponse
from productsaas.routers.auth import get_current_seller

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/", response_model=List[OrderResponse])
def list_orders(
    order_status: Optional[OrderStatus] = Query(None),
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    """Get the seller's orders, newest first"""
    return [OrderResponse.from_orm(order) for order in get_orders(db, auth.user_id, order_status)]

@router.get("/stats", response_model=OrderStats)
def order_stats(auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    return get_order_stats(db, auth.user_id)

@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    return OrderResponse.from_orm(get_seller_order(db, order_id, auth.user_id))

@router.put("/{order_id}", response_model=OrderResponse)
def edit_order(
    order_id: str,
    order_data: OrderUpdate,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    return OrderResponse.from_orm(update_order(db, order_id, order_data, auth.user_id))

@router.patch("/{order_id}/status", response_model=OrderResponse)
def change_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    return OrderResponse.from_orm(update_order_status(db, order_id, data.order_status, auth.user_id))

@router.patch("/{order_id}/payment-status", response_model=OrderResponse)
def change_payment_status(
    order_id: str,
    data: PaymentStatusUpdate,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    return OrderResponse.from_orm(update_payment_status(db, order_id, data.payment_status, auth.user_id))

@router.delete("/{order_id}", response_model=MessageResponse)
def remove_order(order_id: str, auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    delete_order(db, order_id, auth.user_id)
    return MessageResponse(message="Order deleted successfully")
