from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from productsaas.models.settings import UserSettings
from productsaas.schemas.settings import SettingsUpdate
from productsaas.services.product import update_seller_products_currency
from productsaas.core.config import settings
from productsaas.core.exceptions import RemoteStoreError
import logging

logger = logging.getLogger(__name__)

def get_user_settings(db: Session, user_id: str) -> UserSettings:
    """The seller's settings, or unsaved defaults when none were stored yet"""
    user_settings = db.query(UserSettings).filter(UserSettings.user_id == user_id).first()
    if user_settings is None:
        return UserSettings(user_id=user_id, currency=settings.DEFAULT_CURRENCY, paypal_email=None)
    return user_settings

def get_paypal_email(db: Session, user_id: str):
    user_settings = db.query(UserSettings).filter(UserSettings.user_id == user_id).first()
    return user_settings.paypal_email if user_settings else None

def update_settings_and_sync_currency(db: Session, user_id: str, settings_data: SettingsUpdate) -> UserSettings:
    """Upsert the seller's settings and move all of their products to the new currency."""
    user_settings = db.query(UserSettings).filter(UserSettings.user_id == user_id).first()
    if user_settings is None:
        user_settings = UserSettings(user_id=user_id)
        db.add(user_settings)

    user_settings.currency = settings_data.currency
    user_settings.paypal_email = settings_data.paypal_email

    try:
        updated = update_seller_products_currency(db, user_id, settings_data.currency)
        db.commit()
        db.refresh(user_settings)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error saving settings for {user_id}: {str(e)}")
        raise RemoteStoreError("save settings")

    logger.info(f"Settings saved for {user_id}; currency {settings_data.currency} synced to {updated} products")
    return user_settings
