from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from productsaas.database.connection import get_db
from productsaas.services.settings import get_user_settings, update_settings_and_sync_currency
from productsaas.schemas.settings import SettingsResponse, SettingsUpdate
from productsaas.schemas.user import AuthContext
from productsaas.routers.auth import get_current_seller

router = APIRouter()

@router.get("/", response_model=SettingsResponse)
def get_settings(auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    return SettingsResponse.from_orm(get_user_settings(db, auth.user_id))

@router.put("/", response_model=SettingsResponse)
def save_settings(
    settings_data: SettingsUpdate,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    """Save currency and PayPal email; every product moves to the new currency"""
    return SettingsResponse.from_orm(update_settings_and_sync_currency(db, auth.user_id, settings_data))
