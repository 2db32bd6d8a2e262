import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlmodel import Session

from app.schemas.payment_schemas import CreatePaymentRequest
from app.services.payment_function import (
    create_payment,
    error_payload,
    get_function_session,
)
from app.services.payment_gateway import PaymentGateway, get_payment_gateway

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-payment")
async def create_payment_function(
    request: Request,
    gateway: PaymentGateway = Depends(get_payment_gateway),
    function_session: Optional[Session] = Depends(get_function_session),
):
    """Every failure comes back as 500 with {error, details, type}."""
    try:
        try:
            body = await request.json()
        except ValueError as exc:
            raise ValueError("Invalid JSON in request body") from exc

        payload = CreatePaymentRequest.model_validate(body or {})
        # gateway call and mapping commit are blocking
        return await run_in_threadpool(create_payment, payload, gateway, function_session)
    except Exception as exc:
        logger.exception("Error in create-payment function")
        return JSONResponse(status_code=500, content=error_payload(exc))
