from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import desc
from productsaas.models.product import Product, ProductStatus
from productsaas.models.settings import UserSettings
from productsaas.schemas.product import ProductCreate, ProductUpdate
from productsaas.core.config import settings
from productsaas.core.exceptions import ResourceNotFoundError, RemoteStoreError
from productsaas.core.slug import slugify
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

def _row_values(product_data: ProductCreate) -> dict:
    return {
        "title": product_data.title,
        "description": product_data.description,
        "price": product_data.price,
        "type": product_data.type.value,
        "payment_gateways": [gateway.value for gateway in product_data.payment_gateways],
        "custom_fields": [field.dict() for field in product_data.custom_fields],
        "images": list(product_data.images),
        "status": product_data.status,
    }

def _seller_currency(db: Session, seller_id: str) -> str:
    user_settings = db.query(UserSettings).filter(UserSettings.user_id == seller_id).first()
    return user_settings.currency if user_settings else settings.DEFAULT_CURRENCY

def create_product(db: Session, product_data: ProductCreate, seller_id: str) -> Product:
    """Create a new product for a seller"""
    product = Product(
        seller_id=seller_id,
        currency=product_data.currency or _seller_currency(db, seller_id),
        **_row_values(product_data)
    )

    try:
        db.add(product)
        db.commit()
        db.refresh(product)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating product: {str(e)}")
        raise RemoteStoreError("create product")

    logger.info(f"Product created: {product.title} by seller {seller_id}")
    return product

def get_product_by_id(db: Session, product_id: str) -> Optional[Product]:
    """Get a product by ID"""
    return db.query(Product).filter(Product.id == product_id).first()

def get_seller_product(db: Session, product_id: str, seller_id: str) -> Product:
    product = db.query(Product).filter(
        Product.id == product_id,
        Product.seller_id == seller_id
    ).first()
    if not product:
        raise ResourceNotFoundError("Product", product_id)
    return product

def get_products_by_seller(db: Session, seller_id: str, active_only: bool = False) -> List[Product]:
    """Get all products for a specific seller, newest first"""
    query = db.query(Product).filter(Product.seller_id == seller_id)

    if active_only:
        query = query.filter(Product.status == ProductStatus.ACTIVE)

    return query.order_by(desc(Product.created_at)).all()

def find_active_product_by_slug(db: Session, seller_id: str, product_slug: str) -> Product:
    """Storefront lookup: the seller's active product whose title slugifies to product_slug"""
    for product in get_products_by_seller(db, seller_id, active_only=True):
        if slugify(product.title) == product_slug:
            return product
    raise ResourceNotFoundError("Product", product_slug)

def update_product(db: Session, product_id: str, product_data: ProductUpdate, seller_id: str) -> Product:
    """Replace a product's editable fields (only by the seller)"""
    product = get_seller_product(db, product_id, seller_id)

    for field, value in _row_values(product_data).items():
        setattr(product, field, value)
    if product_data.currency:
        product.currency = product_data.currency

    try:
        db.commit()
        db.refresh(product)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating product: {str(e)}")
        raise RemoteStoreError("update product")

    logger.info(f"Product updated: {product.title} by seller {seller_id}")
    return product

def toggle_product_status(db: Session, product_id: str, seller_id: str) -> Product:
    """active -> inactive, anything else -> active"""
    product = get_seller_product(db, product_id, seller_id)
    if product.status == ProductStatus.ACTIVE:
        product.status = ProductStatus.INACTIVE
    else:
        product.status = ProductStatus.ACTIVE

    try:
        db.commit()
        db.refresh(product)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error toggling product status: {str(e)}")
        raise RemoteStoreError("toggle product status")

    logger.info(f"Product {product.id} is now {product.status.value}")
    return product

def update_seller_products_currency(db: Session, seller_id: str, currency: str) -> int:
    """Bulk-update the currency of every product the seller owns; the caller commits"""
    return db.query(Product).filter(Product.seller_id == seller_id).update(
        {Product.currency: currency},
        synchronize_session=False
    )

def delete_product(db: Session, product_id: str, seller_id: str) -> None:
    """Delete a product. Orders keep their own snapshot of it."""
    product = get_seller_product(db, product_id, seller_id)

    try:
        db.delete(product)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting product: {str(e)}")
        raise RemoteStoreError("delete product")

    logger.info(f"Product deleted: {product_id} by seller {seller_id}")
