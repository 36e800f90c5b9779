from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime, timezone
from decimal import Decimal
from productsaas.models.coupon import DiscountType


def to_naive_utc(v: Optional[datetime]) -> Optional[datetime]:
    # Timestamps are stored as naive UTC
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


class CouponBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    discount_type: DiscountType
    discount_value: Decimal = Field(..., gt=0)
    min_order_amount: Decimal = Field(Decimal("0"), ge=0)
    max_uses: Optional[int] = Field(None, ge=1, description="Leave empty for unlimited uses")
    expires_at: Optional[datetime] = None
    is_active: bool = True

    @validator('code')
    def normalize_code(cls, v):
        v = v.strip().upper()
        if not v:
            raise ValueError('Coupon code cannot be empty')
        return v

    @validator('discount_value')
    def validate_discount_value(cls, v, values):
        if values.get('discount_type') == DiscountType.PERCENTAGE and v > 100:
            raise ValueError('A percentage discount cannot exceed 100')
        return v

    @validator('expires_at')
    def normalize_expiry(cls, v):
        return to_naive_utc(v)


class CouponCreate(CouponBase):
    pass


class CouponUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, gt=0)
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    expires_at: Optional[datetime] = None
    is_active: Optional[bool] = None

    @validator('code')
    def normalize_code(cls, v):
        return v.strip().upper() if v else v

    @validator('expires_at')
    def normalize_expiry(cls, v):
        return to_naive_utc(v)


class CouponValidateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    order_amount: Decimal = Field(..., ge=0)


class CouponResponse(BaseModel):
    id: str
    seller_id: str
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    min_order_amount: Decimal
    max_uses: Optional[int]
    current_uses: int
    expires_at: Optional[datetime]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
