import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric, Text, JSON, Enum
from sqlalchemy.orm import relationship
from productsaas.database.base import Base
from productsaas.core.slug import slugify
import enum

class ProductStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"

class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    seller_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    type = Column(String(20), nullable=False, default="Service")
    payment_gateways = Column(JSON, nullable=False, default=list)
    custom_fields = Column(JSON, nullable=False, default=list)  # [{id, name, type, required, options}]
    images = Column(JSON, nullable=False, default=list)
    status = Column(Enum(ProductStatus), default=ProductStatus.ACTIVE, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    seller = relationship("User", back_populates="products")

    @property
    def slug(self) -> str:
        return slugify(self.title)
