from decimal import Decimal
from typing import List
from sqlalchemy import desc, func
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from productsaas.models.user import User, Role
from productsaas.models.product import Product, ProductStatus
from productsaas.models.order import Order, PaymentStatus
from productsaas.schemas.admin import AdminCreateRequest, PlatformStats
from productsaas.services.auth import create_user, get_user_by_id, revoke_user_sessions
from productsaas.services.pricing import to_money
from productsaas.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    RemoteStoreError,
    ResourceNotFoundError,
)
import logging

logger = logging.getLogger(__name__)

def admin_exists(db: Session) -> bool:
    return db.query(User).filter(User.role == Role.ADMIN.value).first() is not None

def setup_first_admin(db: Session, admin_data: AdminCreateRequest) -> User:
    """Create the first admin account. Refused once any admin exists."""
    if admin_exists(db):
        raise AuthorizationError("An admin account already exists")

    user = create_user(db, admin_data.email, admin_data.username, admin_data.password, role=Role.ADMIN)
    logger.info(f"First admin account created: {user.email}")
    return user

def list_users(db: Session, skip: int = 0, limit: int = 100) -> List[User]:
    return db.query(User).order_by(desc(User.created_at)).offset(skip).limit(limit).all()

def set_user_active(db: Session, user_id: str, is_active: bool, acting_admin_id: str) -> User:
    user = get_user_by_id(db, user_id)
    if user is None:
        raise ResourceNotFoundError("User", user_id)
    if user.id == acting_admin_id and not is_active:
        raise BusinessLogicError("You cannot deactivate your own account")

    user.is_active = is_active
    try:
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating user {user_id}: {str(e)}")
        raise RemoteStoreError("update user status")

    if not is_active:
        revoke_user_sessions(db, user.id)

    logger.info(f"User {user.email} {'activated' if is_active else 'deactivated'} by {acting_admin_id}")
    return user

def get_platform_stats(db: Session) -> PlatformStats:
    users_by_role = {}
    for role, count in db.query(User.role, func.count(User.id)).group_by(User.role).all():
        kind = Role.parse(role).value
        users_by_role[kind] = users_by_role.get(kind, 0) + count

    paid_orders, paid_revenue = db.query(
        func.count(Order.id),
        func.coalesce(func.sum(Order.total_amount), 0)
    ).filter(Order.payment_status == PaymentStatus.PAID).one()

    return PlatformStats(
        users_by_role=users_by_role,
        total_users=sum(users_by_role.values()),
        active_users=db.query(User).filter(User.is_active == True).count(),  # noqa: E712
        total_products=db.query(Product).count(),
        active_products=db.query(Product).filter(Product.status == ProductStatus.ACTIVE).count(),
        total_orders=db.query(Order).count(),
        paid_orders=paid_orders,
        paid_revenue=to_money(Decimal(str(paid_revenue)))
    )
