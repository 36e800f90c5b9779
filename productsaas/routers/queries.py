from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from productsaas.database.connection import get_db
from productsaas.models.query import QueryStatus, QueryPriority
from productsaas.services.query import (
    delete_query,
    get_queries,
    get_query_stats,
    get_seller_query,
    reply_to_query,
    update_query_status,
)
from productsaas.schemas.query import QueryReply, QueryResponse, QueryStats, QueryStatusUpdate
from productsaas.schemas.user import AuthContext, MessageResponse
from productsaas.routers.auth import get_current_seller

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/", response_model=List[QueryResponse])
def list_queries(
    query_status: Optional[QueryStatus] = Query(None, alias="status"),
    priority: Optional[QueryPriority] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    """Support queries sent to the seller, newest first"""
    queries = get_queries(db, auth.user_id, status=query_status, priority=priority, search=search)
    return [QueryResponse.from_orm(support_query) for support_query in queries]

@router.get("/stats", response_model=QueryStats)
def query_stats(auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    return get_query_stats(db, auth.user_id)

@router.get("/{query_id}", response_model=QueryResponse)
def get_query(query_id: str, auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    return QueryResponse.from_orm(get_seller_query(db, query_id, auth.user_id))

@router.patch("/{query_id}/status", response_model=QueryResponse)
def change_query_status(
    query_id: str,
    data: QueryStatusUpdate,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    return QueryResponse.from_orm(update_query_status(db, query_id, data.status, auth.user_id))

@router.post("/{query_id}/reply", response_model=QueryResponse)
def reply(
    query_id: str,
    data: QueryReply,
    auth: AuthContext = Depends(get_current_seller),
    db: Session = Depends(get_db)
):
    return QueryResponse.from_orm(reply_to_query(db, query_id, data.reply_message, auth.user_id))

@router.delete("/{query_id}", response_model=MessageResponse)
def remove_query(query_id: str, auth: AuthContext = Depends(get_current_seller), db: Session = Depends(get_db)):
    delete_query(db, query_id, auth.user_id)
    return MessageResponse(message="Query deleted successfully")
