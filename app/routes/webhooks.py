import json
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from app.database import get_session
from app.services.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    get_payment_gateway,
)
from app.services.payment_service import handle_webhook_event

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/razorpay")
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: str = Header(default=""),
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    body = (await request.body()).decode("utf-8")

    try:
        verified = await run_in_threadpool(gateway.verify_webhook, body, x_razorpay_signature)
    except PaymentGatewayError as exc:
        logger.error(f"Webhook rejected: {exc}")
        raise HTTPException(status_code=503, detail=str(exc))

    if not verified:
        raise HTTPException(status_code=400, detail="Invalid webhook signature")

    try:
        event = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    return await run_in_threadpool(handle_webhook_event, session, event)
