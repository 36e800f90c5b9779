import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from productsaas.database.base import Base
import enum

class Role(str, enum.Enum):
    SELLER = "seller"
    ADMIN = "admin"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value) -> "Role":
        """Map a stored role string onto the closed set of roles."""
        if isinstance(value, cls):
            return value
        try:
            role = cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN
        return role

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    # Kept as free text: rows written by other tools may carry roles we do not know
    role = Column(String(20), nullable=False, default=Role.SELLER.value)
    is_active = Column(Boolean, default=True)
    is_verified = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    products = relationship("Product", back_populates="seller", cascade="all, delete-orphan")
    settings = relationship("UserSettings", uselist=False, back_populates="user", cascade="all, delete-orphan")

    @property
    def role_kind(self) -> Role:
        return Role.parse(self.role)
