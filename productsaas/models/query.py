import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Enum
from productsaas.database.base import Base
import enum

class QueryStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"

class QueryPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

class QueryCategory(str, enum.Enum):
    GENERAL = "general"
    TECHNICAL = "technical"
    BILLING = "billing"
    PRODUCT = "product"
    REFUND = "refund"
    COMPLAINT = "complaint"

class SupportQuery(Base):
    """A support ticket a buyer sends to a seller."""
    __tablename__ = "queries"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    seller_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    customer_email = Column(String, nullable=False)
    customer_name = Column(String, nullable=True)
    subject = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(Enum(QueryPriority), default=QueryPriority.MEDIUM, index=True)
    status = Column(Enum(QueryStatus), default=QueryStatus.OPEN, index=True)
    category = Column(Enum(QueryCategory), default=QueryCategory.GENERAL)
    reply_message = Column(Text, nullable=True)
    replied_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
