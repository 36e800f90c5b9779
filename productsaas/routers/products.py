from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List
import logging

from productsaas.database.connection import get_db
from productsaas.services.product import (
    create_product,
    delete_product,
    get_products_by_seller,
    get_seller_product,
    toggle_product_status,
    update_product,
)
from productsaas.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from productsaas.schemas.user import AuthContext, MessageResponse
from productsaas.routers.auth import get_current_seller

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_seller_product(
    product_data: ProductCreate,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    """Create a new product; the currency defaults to the seller's settings"""
    product = create_product(db=db, product_data=product_data, seller_id=auth.user_id)
    return ProductResponse.from_orm(product)

@router.get("/", response_model=List[ProductResponse])
def get_my_products(
    active_only: bool = Query(False),
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    """Get current seller's products, newest first"""
    products = get_products_by_seller(db=db, seller_id=auth.user_id, active_only=active_only)
    return [ProductResponse.from_orm(product) for product in products]

@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: str,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    return ProductResponse.from_orm(get_seller_product(db, product_id, auth.user_id))

@router.put("/{product_id}", response_model=ProductResponse)
def update_seller_product(
    product_id: str,
    product_data: ProductUpdate,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    product = update_product(db=db, product_id=product_id, product_data=product_data, seller_id=auth.user_id)
    return ProductResponse.from_orm(product)

@router.patch("/{product_id}/toggle", response_model=ProductResponse)
def toggle_product(
    product_id: str,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    """Switch a product between active and inactive"""
    return ProductResponse.from_orm(toggle_product_status(db, product_id, auth.user_id))

@router.delete("/{product_id}", response_model=MessageResponse)
def delete_seller_product(
    product_id: str,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    delete_product(db, product_id, auth.user_id)
    return MessageResponse(message="Product deleted successfully")
