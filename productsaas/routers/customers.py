from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from productsaas.database.connection import get_db
from productsaas.models.customer import CustomerStatus
from productsaas.services.customer import (
    create_customer,
    delete_customer,
    get_customer_stats,
    get_customers,
    get_seller_customer,
    sync_customers_from_orders,
    update_customer,
)
from productsaas.schemas.customer import (
    CustomerCreate,
    CustomerResponse,
    CustomerStats,
    CustomerStatusUpdate,
    CustomerUpdate,
)
from productsaas.schemas.user import AuthContext, MessageResponse
from productsaas.routers.auth import get_current_seller

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/", response_model=List[CustomerResponse])
def list_customers(
    customer_status: Optional[CustomerStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    """The seller's customers, optionally filtered by status or a name/email search"""
    customers = get_customers(db, auth.user_id, status=customer_status, search=search)
    return [CustomerResponse.from_orm(customer) for customer in customers]

@router.post("/", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def add_customer(
    customer_data: CustomerCreate,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    return CustomerResponse.from_orm(create_customer(db, customer_data, auth.user_id))

@router.get("/stats", response_model=CustomerStats)
def customer_stats(auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    return get_customer_stats(db, auth.user_id)

@router.post("/sync", response_model=MessageResponse)
def sync_customers(auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    """Rebuild the customer list from all of the seller's orders"""
    synced = sync_customers_from_orders(db, auth.user_id)
    return MessageResponse(message=f"Synced {synced} orders into customers")

@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: str, auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    return CustomerResponse.from_orm(get_seller_customer(db, customer_id, auth.user_id))

@router.put("/{customer_id}", response_model=CustomerResponse)
def edit_customer(
    customer_id: str,
    customer_data: CustomerUpdate,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    return CustomerResponse.from_orm(update_customer(db, customer_id, customer_data, auth.user_id))

@router.patch("/{customer_id}/status", response_model=CustomerResponse)
def change_customer_status(
    customer_id: str,
    data: CustomerStatusUpdate,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    customer = update_customer(db, customer_id, CustomerUpdate(status=data.status), auth.user_id)
    return CustomerResponse.from_orm(customer)

@router.delete("/{customer_id}", response_model=MessageResponse)
def remove_customer(customer_id: str, auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    delete_customer(db, customer_id, auth.user_id)
    return MessageResponse(message="Customer deleted successfully")
