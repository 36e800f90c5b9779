from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum
from productsaas.models.product import ProductStatus

MAX_PRODUCT_IMAGES = 5


class ProductType(str, Enum):
    SERVICE = "Service"
    DIGITAL = "Digital"
    PHYSICAL = "Physical"


class PaymentGateway(str, Enum):
    BITCOIN = "bitcoin"
    ETHEREUM = "ethereum"
    LITECOIN = "litecoin"
    PAYPAL = "paypal"
    STRIPE = "stripe"


class CustomFieldType(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    NUMBER = "number"
    TEL = "tel"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"


class CustomField(BaseModel):
    id: int
    name: str = ""
    type: CustomFieldType = CustomFieldType.TEXT
    required: bool = False
    options: List[str] = []

    class Config:
        use_enum_values = True

    @validator('name')
    def validate_name(cls, v):
        return v.strip()


class ProductBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200, description="Product title")
    description: Optional[str] = Field("", max_length=5000)
    price: Decimal = Field(..., ge=0, description="Unit price, never negative")
    currency: Optional[str] = Field(None, min_length=3, max_length=3, description="Defaults to the seller's currency")
    type: ProductType = ProductType.SERVICE
    payment_gateways: List[PaymentGateway] = []
    custom_fields: List[CustomField] = []
    images: List[str] = []
    status: ProductStatus = ProductStatus.ACTIVE

    @validator('title')
    def validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError('Product title cannot be empty')
        return v.strip()

    @validator('currency')
    def validate_currency(cls, v):
        if v is None:
            return v
        if not v.isalpha():
            raise ValueError('Currency must be a 3-letter code')
        return v.upper()

    @validator('custom_fields')
    def drop_unnamed_fields(cls, v):
        # The dashboard form always submits one empty row
        return [field for field in v if field.name]

    @validator('images')
    def validate_images(cls, v):
        if len(v) > MAX_PRODUCT_IMAGES:
            raise ValueError(f'A product can have at most {MAX_PRODUCT_IMAGES} images')
        return v


class ProductCreate(ProductBase):
    pass


class ProductUpdate(ProductBase):
    """Products are saved as a whole row from the edit form."""
    pass


class ProductResponse(BaseModel):
    id: str
    seller_id: str
    title: str
    slug: str
    description: Optional[str]
    price: Decimal
    currency: str
    type: str
    payment_gateways: List[str] = []
    custom_fields: List[CustomField] = []
    images: List[str] = []
    status: ProductStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
