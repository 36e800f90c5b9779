from pydantic import BaseModel, EmailStr, Field, validator
from typing import Dict
from decimal import Decimal
from productsaas.schemas.user import USERNAME_PATTERN, check_password_strength


class AdminCreateRequest(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)
    password: str

    @validator('username')
    def validate_username(cls, v):
        v = v.strip().lower()
        if not USERNAME_PATTERN.match(v):
            raise ValueError('Username may only contain letters, digits, "-" and "_"')
        return v

    @validator('password')
    def validate_password(cls, v):
        return check_password_strength(v)


class UserStatusUpdate(BaseModel):
    is_active: bool


class PlatformStats(BaseModel):
    users_by_role: Dict[str, int]
    total_users: int
    active_users: int
    total_products: int
    active_products: int
    total_orders: int
    paid_orders: int
    paid_revenue: Decimal
