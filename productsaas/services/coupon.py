from datetime import datetime
from decimal import Decimal
from typing import List
from sqlalchemy import desc, or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from productsaas.models.coupon import Coupon, DiscountType
from productsaas.schemas.coupon import CouponCreate, CouponUpdate
from productsaas.core.exceptions import (
    BusinessLogicError,
    InvalidCouponError,
    RemoteStoreError,
    ResourceNotFoundError,
    ValidationError,
)
import logging

logger = logging.getLogger(__name__)

def get_user_coupons(db: Session, seller_id: str) -> List[Coupon]:
    return db.query(Coupon).filter(Coupon.seller_id == seller_id).order_by(desc(Coupon.created_at)).all()

def get_seller_coupon(db: Session, coupon_id: str, seller_id: str) -> Coupon:
    coupon = db.query(Coupon).filter(Coupon.id == coupon_id, Coupon.seller_id == seller_id).first()
    if not coupon:
        raise ResourceNotFoundError("Coupon", coupon_id)
    return coupon

def _ensure_code_available(db: Session, seller_id: str, code: str, exclude_id: str = None):
    query = db.query(Coupon).filter(Coupon.seller_id == seller_id, Coupon.code == code)
    if exclude_id:
        query = query.filter(Coupon.id != exclude_id)
    if query.first():
        raise BusinessLogicError(f"Coupon code '{code}' already exists")

def _save(db: Session, coupon: Coupon, operation: str) -> Coupon:
    try:
        db.commit()
        db.refresh(coupon)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error on {operation}: {str(e)}")
        raise BusinessLogicError(f"Coupon code '{coupon.code}' already exists")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error on {operation}: {str(e)}")
        raise RemoteStoreError(operation)
    return coupon

def create_coupon(db: Session, coupon_data: CouponCreate, seller_id: str) -> Coupon:
    _ensure_code_available(db, seller_id, coupon_data.code)

    coupon = Coupon(seller_id=seller_id, current_uses=0, **coupon_data.dict())
    db.add(coupon)
    _save(db, coupon, "create coupon")

    logger.info(f"Coupon created: {coupon.code} by seller {seller_id}")
    return coupon

def update_coupon(db: Session, coupon_id: str, coupon_data: CouponUpdate, seller_id: str) -> Coupon:
    coupon = get_seller_coupon(db, coupon_id, seller_id)
    updates = coupon_data.dict(exclude_unset=True)

    if updates.get("code") and updates["code"] != coupon.code:
        _ensure_code_available(db, seller_id, updates["code"], exclude_id=coupon.id)

    for field, value in updates.items():
        if value is None and field in ("code", "discount_type", "discount_value", "min_order_amount", "is_active"):
            continue
        setattr(coupon, field, value)

    if coupon.discount_type == DiscountType.PERCENTAGE and Decimal(coupon.discount_value) > 100:
        db.rollback()
        raise ValidationError("A percentage discount cannot exceed 100", field="discount_value")

    _save(db, coupon, "update coupon")
    logger.info(f"Coupon updated: {coupon.code} by seller {seller_id}")
    return coupon

def delete_coupon(db: Session, coupon_id: str, seller_id: str) -> None:
    coupon = get_seller_coupon(db, coupon_id, seller_id)
    try:
        db.delete(coupon)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting coupon: {str(e)}")
        raise RemoteStoreError("delete coupon")
    logger.info(f"Coupon deleted: {coupon_id} by seller {seller_id}")

def toggle_coupon_status(db: Session, coupon_id: str, seller_id: str) -> Coupon:
    coupon = get_seller_coupon(db, coupon_id, seller_id)
    coupon.is_active = not coupon.is_active
    return _save(db, coupon, "toggle coupon status")

def validate_coupon(db: Session, seller_id: str, code: str, order_amount: Decimal,
                    enforce_usage_limit: bool = True) -> Coupon:
    """
    Look up a seller's coupon and check it can be applied to an order of
    `order_amount`. Raises InvalidCouponError when it cannot.

    `enforce_usage_limit=False` is used when the use was already counted
    earlier in the same checkout.
    """
    coupon = db.query(Coupon).filter(
        Coupon.seller_id == seller_id,
        Coupon.code == code.strip().upper(),
        Coupon.is_active == True  # noqa: E712
    ).first()

    if coupon is None:
        raise InvalidCouponError("Invalid coupon code")

    if coupon.expires_at is not None and coupon.expires_at < datetime.utcnow():
        raise InvalidCouponError("Coupon has expired")

    if coupon.min_order_amount and order_amount < coupon.min_order_amount:
        raise InvalidCouponError(f"Minimum order amount is {coupon.min_order_amount}")

    if enforce_usage_limit and coupon.max_uses is not None and coupon.current_uses >= coupon.max_uses:
        raise InvalidCouponError("Coupon usage limit reached")

    return coupon

def increment_coupon_usage(db: Session, coupon_id: str, commit: bool = True) -> bool:
    """
    Count one use of a coupon with a single conditional UPDATE, so two
    concurrent checkouts cannot both take the last use. Returns False when
    the limit was already reached.
    """
    try:
        updated = db.query(Coupon).filter(
            Coupon.id == coupon_id,
            or_(Coupon.max_uses.is_(None), Coupon.current_uses < Coupon.max_uses)
        ).update(
            {Coupon.current_uses: Coupon.current_uses + 1, Coupon.updated_at: datetime.utcnow()},
            synchronize_session=False
        )
        if commit:
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error incrementing coupon usage for {coupon_id}: {str(e)}")
        raise RemoteStoreError("record coupon use")

    if not updated:
        logger.warning(f"Coupon {coupon_id} has no uses left")
        return False

    logger.info(f"Coupon use recorded: {coupon_id}")
    return True
