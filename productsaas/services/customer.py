from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from productsaas.models.customer import Customer, CustomerStatus
from productsaas.models.order import Order
from productsaas.schemas.customer import CustomerCreate, CustomerUpdate, CustomerStats
from productsaas.services.pricing import ZERO, to_money
from productsaas.core.exceptions import BusinessLogicError, RemoteStoreError, ResourceNotFoundError
import logging
import uuid

logger = logging.getLogger(__name__)

def get_customers(db: Session, seller_id: str, status: Optional[CustomerStatus] = None,
                  search: Optional[str] = None) -> List[Customer]:
    query = db.query(Customer).filter(Customer.seller_id == seller_id)
    if status is not None:
        query = query.filter(Customer.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Customer.name.ilike(pattern), Customer.email.ilike(pattern)))
    return query.order_by(desc(Customer.created_at)).all()

def get_seller_customer(db: Session, customer_id: str, seller_id: str) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id, Customer.seller_id == seller_id).first()
    if not customer:
        raise ResourceNotFoundError("Customer", customer_id)
    return customer

def create_customer(db: Session, customer_data: CustomerCreate, seller_id: str) -> Customer:
    if db.query(Customer).filter(Customer.seller_id == seller_id, Customer.email == customer_data.email).first():
        raise BusinessLogicError("A customer with this email already exists")

    customer = Customer(
        seller_id=seller_id,
        total_orders=0,
        total_spent=ZERO,
        status=CustomerStatus.ACTIVE,
        **customer_data.dict()
    )

    try:
        db.add(customer)
        db.commit()
        db.refresh(customer)
    except IntegrityError:
        db.rollback()
        raise BusinessLogicError("A customer with this email already exists")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating customer: {str(e)}")
        raise RemoteStoreError("create customer")

    logger.info(f"Customer created: {customer.email} for seller {seller_id}")
    return customer

def update_customer(db: Session, customer_id: str, customer_data: CustomerUpdate, seller_id: str) -> Customer:
    customer = get_seller_customer(db, customer_id, seller_id)

    for field, value in customer_data.dict(exclude_unset=True).items():
        if field == "status" and value is None:
            continue
        setattr(customer, field, value)

    try:
        db.commit()
        db.refresh(customer)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating customer: {str(e)}")
        raise RemoteStoreError("update customer")

    logger.info(f"Customer updated: {customer.email}")
    return customer

def delete_customer(db: Session, customer_id: str, seller_id: str) -> None:
    customer = get_seller_customer(db, customer_id, seller_id)
    try:
        db.delete(customer)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting customer: {str(e)}")
        raise RemoteStoreError("delete customer")
    logger.info(f"Customer deleted: {customer_id}")

def _upsert_statement(dialect_name: str):
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
        return insert
    if dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
        return insert
    return None

def record_order(db: Session, order: Order) -> None:
    """
    Fold an order into the (seller, email) customer rollup without
    committing. On PostgreSQL and SQLite this is a single
    INSERT ... ON CONFLICT DO UPDATE, so two concurrent first orders from
    the same buyer cannot create two rows or lose a count.
    Orders without a contact email stay out of the rollup.
    """
    if not order.customer_email:
        logger.info(f"Order {order.id} has no contact email, not added to customers")
        return

    now = datetime.utcnow()
    order_date = order.created_at or now
    total = to_money(order.total_amount)
    insert = _upsert_statement(db.get_bind().dialect.name)

    if insert is not None:
        stmt = insert(Customer).values(
            id=str(uuid.uuid4()),
            seller_id=order.seller_id,
            email=order.customer_email,
            name=order.customer_name,
            phone=order.customer_phone,
            total_orders=1,
            total_spent=total,
            last_order_date=order_date,
            status=CustomerStatus.ACTIVE,
            created_at=now,
            updated_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Customer.seller_id, Customer.email],
            set_={
                "total_orders": Customer.total_orders + 1,
                "total_spent": Customer.total_spent + total,
                "last_order_date": order_date,
                "name": func.coalesce(stmt.excluded.name, Customer.name),
                "updated_at": now,
            }
        )
        db.execute(stmt)
        return

    # Other backends: conditional update first, insert when nothing matched
    updated = db.query(Customer).filter(
        Customer.seller_id == order.seller_id,
        Customer.email == order.customer_email
    ).update({
        Customer.total_orders: Customer.total_orders + 1,
        Customer.total_spent: Customer.total_spent + total,
        Customer.last_order_date: order_date,
        Customer.name: func.coalesce(order.customer_name, Customer.name),
        Customer.updated_at: now,
    }, synchronize_session=False)
    if not updated:
        db.add(Customer(
            seller_id=order.seller_id,
            email=order.customer_email,
            name=order.customer_name,
            phone=order.customer_phone,
            total_orders=1,
            total_spent=total,
            last_order_date=order_date,
            status=CustomerStatus.ACTIVE
        ))
        db.flush()

def sync_customers_from_orders(db: Session, seller_id: str) -> int:
    """Rebuild the customer rollup from every order of the seller, oldest first."""
    orders = db.query(Order).filter(Order.seller_id == seller_id).order_by(Order.created_at).all()

    try:
        db.query(Customer).filter(Customer.seller_id == seller_id).update(
            {Customer.total_orders: 0, Customer.total_spent: ZERO, Customer.last_order_date: None},
            synchronize_session=False
        )
        for order in orders:
            record_order(db, order)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error syncing customers for {seller_id}: {str(e)}")
        raise RemoteStoreError("sync customers from orders")

    logger.info(f"Synced {len(orders)} orders into customers for seller {seller_id}")
    return len(orders)

def get_customer_stats(db: Session, seller_id: str) -> CustomerStats:
    counts = dict(
        db.query(Customer.status, func.count(Customer.id))
        .filter(Customer.seller_id == seller_id)
        .group_by(Customer.status)
        .all()
    )
    total_revenue, total_orders = db.query(
        func.coalesce(func.sum(Customer.total_spent), 0),
        func.coalesce(func.sum(Customer.total_orders), 0)
    ).filter(Customer.seller_id == seller_id).one()

    total_revenue = to_money(Decimal(str(total_revenue)))
    total_orders = int(total_orders)
    average = to_money(total_revenue / total_orders) if total_orders else ZERO

    return CustomerStats(
        total=sum(counts.values()),
        active=counts.get(CustomerStatus.ACTIVE, 0),
        inactive=counts.get(CustomerStatus.INACTIVE, 0),
        blocked=counts.get(CustomerStatus.BLOCKED, 0),
        total_revenue=total_revenue,
        total_orders=total_orders,
        average_order_value=average
    )
