from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
import logging

from productsaas.database.connection import get_db
from productsaas.services.coupon import (
    create_coupon,
    delete_coupon,
    get_seller_coupon,
    get_user_coupons,
    toggle_coupon_status,
    update_coupon,
    validate_coupon,
)
from productsaas.schemas.coupon import CouponCreate, CouponResponse, CouponUpdate, CouponValidateRequest
from productsaas.schemas.user import AuthContext, MessageResponse
from productsaas.routers.auth import get_current_seller

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/", response_model=List[CouponResponse])
def list_coupons(auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    return [CouponResponse.from_orm(coupon) for coupon in get_user_coupons(db, auth.user_id)]

@router.post("/", response_model=CouponResponse, status_code=status.HTTP_201_CREATED)
def add_coupon(
    coupon_data: CouponCreate,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    return CouponResponse.from_orm(create_coupon(db, coupon_data, auth.user_id))

@router.post("/validate", response_model=CouponResponse)
def check_coupon(
    data: CouponValidateRequest,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    """Check whether one of the seller's coupons applies to an order amount, without using it"""
    return CouponResponse.from_orm(validate_coupon(db, auth.user_id, data.code, data.order_amount))

@router.get("/{coupon_id}", response_model=CouponResponse)
def get_coupon(coupon_id: str, auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    return CouponResponse.from_orm(get_seller_coupon(db, coupon_id, auth.user_id))

@router.put("/{coupon_id}", response_model=CouponResponse)
def edit_coupon(
    coupon_id: str,
    coupon_data: CouponUpdate,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    return CouponResponse.from_orm(update_coupon(db, coupon_id, coupon_data, auth.user_id))

@router.patch("/{coupon_id}/toggle", response_model=CouponResponse)
def toggle_coupon(coupon_id: str, auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    return CouponResponse.from_orm(toggle_coupon_status(db, coupon_id, auth.user_id))

@router.delete("/{coupon_id}", response_model=MessageResponse)
def remove_coupon(coupon_id: str, auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    delete_coupon(db, coupon_id, auth.user_id)
    return MessageResponse(message="Coupon deleted successfully")
