from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session
import logging

from productsaas.database.connection import get_db
from productsaas.services.paypal import handle_ipn

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/ipn")
async def paypal_ipn(request: Request, db: Session = Depends(get_db)):
    """
    PayPal Instant Payment Notification listener. Answers 200 with an empty
    body for every notification it could process, so PayPal stops resending it.
    """
    form = await request.form()
    fields = [(key, str(value)) for key, value in form.multi_items()]
    logger.info(f"IPN received: txn {dict(fields).get('txn_id')} status {dict(fields).get('payment_status')}")

    await handle_ipn(db, fields)
    return Response(status_code=200)
