from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from productsaas.models.customer import CustomerStatus


class CustomerBase(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=300)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = None


class CustomerCreate(CustomerBase):
    email: EmailStr

    @validator('email')
    def normalize_email(cls, v):
        return v.lower()


class CustomerUpdate(CustomerBase):
    status: Optional[CustomerStatus] = None


class CustomerStatusUpdate(BaseModel):
    status: CustomerStatus


class CustomerResponse(CustomerBase):
    id: str
    seller_id: str
    email: str
    total_orders: int
    total_spent: Decimal
    last_order_date: Optional[datetime]
    status: CustomerStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CustomerStats(BaseModel):
    total: int
    active: int
    inactive: int
    blocked: int
    total_revenue: Decimal
    total_orders: int
    average_order_value: Decimal
