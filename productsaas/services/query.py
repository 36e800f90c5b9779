from datetime import datetime
from typing import List, Optional
from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from productsaas.models.query import SupportQuery, QueryStatus, QueryPriority
from productsaas.schemas.query import QueryStats
from productsaas.core.exceptions import RemoteStoreError, ResourceNotFoundError
import logging

logger = logging.getLogger(__name__)

def get_queries(db: Session, seller_id: str, status: Optional[QueryStatus] = None,
                priority: Optional[QueryPriority] = None, search: Optional[str] = None) -> List[SupportQuery]:
    query = db.query(SupportQuery).filter(SupportQuery.seller_id == seller_id)
    if status is not None:
        query = query.filter(SupportQuery.status == status)
    if priority is not None:
        query = query.filter(SupportQuery.priority == priority)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            SupportQuery.subject.ilike(pattern),
            SupportQuery.customer_name.ilike(pattern),
            SupportQuery.customer_email.ilike(pattern)
        ))
    return query.order_by(desc(SupportQuery.created_at)).all()

def get_seller_query(db: Session, query_id: str, seller_id: str) -> SupportQuery:
    support_query = db.query(SupportQuery).filter(
        SupportQuery.id == query_id,
        SupportQuery.seller_id == seller_id
    ).first()
    if not support_query:
        raise ResourceNotFoundError("Query", query_id)
    return support_query

def _save(db: Session, support_query: SupportQuery, operation: str) -> SupportQuery:
    try:
        db.commit()
        db.refresh(support_query)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error on {operation}: {str(e)}")
        raise RemoteStoreError(operation)
    return support_query

def update_query_status(db: Session, query_id: str, status: QueryStatus, seller_id: str) -> SupportQuery:
    support_query = get_seller_query(db, query_id, seller_id)
    support_query.status = status
    _save(db, support_query, "update query status")
    logger.info(f"Query {support_query.id} status changed to {status.value}")
    return support_query

def reply_to_query(db: Session, query_id: str, reply_message: str, seller_id: str) -> SupportQuery:
    """Store the seller's reply and mark the query resolved"""
    support_query = get_seller_query(db, query_id, seller_id)
    support_query.reply_message = reply_message
    support_query.replied_at = datetime.utcnow()
    support_query.status = QueryStatus.RESOLVED
    _save(db, support_query, "reply to query")
    logger.info(f"Query {support_query.id} answered by seller {seller_id}")
    return support_query

def delete_query(db: Session, query_id: str, seller_id: str) -> None:
    support_query = get_seller_query(db, query_id, seller_id)
    try:
        db.delete(support_query)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting query: {str(e)}")
        raise RemoteStoreError("delete query")
    logger.info(f"Query deleted: {query_id}")

def get_query_stats(db: Session, seller_id: str) -> QueryStats:
    by_status = dict(
        db.query(SupportQuery.status, func.count(SupportQuery.id))
        .filter(SupportQuery.seller_id == seller_id)
        .group_by(SupportQuery.status)
        .all()
    )
    by_priority = dict(
        db.query(SupportQuery.priority, func.count(SupportQuery.id))
        .filter(SupportQuery.seller_id == seller_id)
        .group_by(SupportQuery.priority)
        .all()
    )

    return QueryStats(
        total=sum(by_status.values()),
        open=by_status.get(QueryStatus.OPEN, 0),
        in_progress=by_status.get(QueryStatus.IN_PROGRESS, 0),
        resolved=by_status.get(QueryStatus.RESOLVED, 0),
        urgent=by_priority.get(QueryPriority.URGENT, 0),
        high=by_priority.get(QueryPriority.HIGH, 0)
    )
