from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional


class SettingsUpdate(BaseModel):
    currency: str = Field(..., min_length=3, max_length=3)
    paypal_email: Optional[EmailStr] = None

    @validator('currency')
    def validate_currency(cls, v):
        if not v.isalpha():
            raise ValueError('Currency must be a 3-letter code')
        return v.upper()

    @validator('paypal_email', pre=True)
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SettingsResponse(BaseModel):
    user_id: str
    currency: str
    paypal_email: Optional[str] = None

    class Config:
        from_attributes = True
