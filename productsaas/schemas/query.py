from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional
from datetime import datetime
from productsaas.models.query import QueryStatus, QueryPriority, QueryCategory


class QueryCreate(BaseModel):
    customer_email: EmailStr
    customer_name: Optional[str] = Field(None, max_length=200)
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)
    priority: QueryPriority = QueryPriority.MEDIUM
    category: QueryCategory = QueryCategory.GENERAL

    @validator('subject', 'message')
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError('Field cannot be empty')
        return v.strip()


class QueryStatusUpdate(BaseModel):
    status: QueryStatus


class QueryReply(BaseModel):
    reply_message: str = Field(..., min_length=1, max_length=5000)

    @validator('reply_message')
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError('Reply cannot be empty')
        return v.strip()


class QueryResponse(BaseModel):
    id: str
    seller_id: str
    customer_email: str
    customer_name: Optional[str]
    subject: str
    message: str
    priority: QueryPriority
    status: QueryStatus
    category: QueryCategory
    reply_message: Optional[str]
    replied_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class QueryStats(BaseModel):
    total: int
    open: int
    in_progress: int
    resolved: int
    urgent: int
    high: int
