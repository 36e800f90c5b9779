from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List
import logging

from productsaas.database.connection import get_db
from productsaas.services.admin import get_platform_stats, list_users, set_user_active, setup_first_admin
from productsaas.schemas.admin import AdminCreateRequest, PlatformStats, UserStatusUpdate
from productsaas.schemas.user import AuthContext, UserResponse
from productsaas.routers.auth import get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/setup-admin", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def setup_admin(admin_data: AdminCreateRequest, db: Session = Depends(get_db)):
    """Create the first admin account. Only works while no admin exists."""
    return UserResponse.from_orm(setup_first_admin(db, admin_data))

@router.get("/users", response_model=List[UserResponse])
def get_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    auth: AuthContext = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return [UserResponse.from_orm(user) for user in list_users(db, skip=skip, limit=limit)]

@router.get("/stats", response_model=PlatformStats)
def platform_stats(auth: AuthContext = Depends(get_current_admin), db: Session = Depends(get_db)):
    return get_platform_stats(db)

@router.patch("/users/{user_id}/status", response_model=UserResponse)
def change_user_status(
    user_id: str,
    data: UserStatusUpdate,
    auth: AuthContext = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Activate or deactivate an account; deactivation ends its sessions"""
    return UserResponse.from_orm(set_user_active(db, user_id, data.is_active, auth.user_id))
