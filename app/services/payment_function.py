"""
The create-payment function: turns an order id + amount into a gateway
payment session. Runs with its own store connection for batch mappings.
"""
import logging
from functools import lru_cache
from typing import List, Optional

from sqlmodel import Session, create_engine

from app.config import settings
from app.models.batch_order import BatchOrder
from app.schemas.payment_schemas import CreatePaymentRequest
from app.services.payment_gateway import PaymentGateway, PaymentGatewayError

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_DETAILS = {
    "first_name": "Customer",
    "email": "customer@example.com",
    "phone": "08123456789",
}


@lru_cache(maxsize=4)
def _function_engine(url: str):
    return create_engine(url, pool_pre_ping=True)


def get_function_session():
    """Yields None when the function store is not configured."""
    if not settings.FUNCTIONS_STORE_URL:
        yield None
        return
    with Session(_function_engine(settings.FUNCTIONS_STORE_URL)) as session:
        yield session


def save_batch_mapping(session: Optional[Session], batch_id: str, order_ids: List[int]):
    if session is None:
        logger.error(
            f"Function store not configured, batch mapping for {batch_id} skipped"
        )
        return []

    logger.info(f"Saving batch mapping {batch_id} -> {order_ids}")

    rows = [BatchOrder(batch_id=batch_id, order_id=oid) for oid in order_ids]
    try:
        session.add_all(rows)
        session.commit()
    except Exception as exc:
        session.rollback()
        logger.exception(f"Error saving batch mapping {batch_id}")
        raise RuntimeError(f"Failed to save batch mapping: {exc}") from exc

    return rows


def create_payment(
    request: CreatePaymentRequest,
    gateway: PaymentGateway,
    store_session: Optional[Session] = None,
) -> dict:
    if not request.order_id:
        raise ValueError("Order ID is required")

    if not request.amount or request.amount <= 0:
        raise ValueError("Valid amount is required")

    if not gateway.is_configured:
        logger.error("Payment gateway key not configured")
        raise PaymentGatewayError("Payment gateway key not configured")

    # mapping goes in before the provider is contacted
    if request.batch_order_ids:
        save_batch_mapping(store_session, request.order_id, request.batch_order_ids)

    provided = {
        k: v for k, v in (request.customer_details or {}).items() if v is not None
    }
    customer_details = {**DEFAULT_CUSTOMER_DETAILS, **provided}

    item_details = request.item_details or [
        {
            "id": request.order_id,
            "price": request.amount,
            "quantity": 1,
            "name": "Payment",
        }
    ]

    payment_session = gateway.create_transaction(
        order_id=request.order_id,
        amount=request.amount,
        customer_details=customer_details,
        item_details=item_details,
    )

    logger.info(f"Payment session created for {request.order_id}")

    return {
        "snap_token": payment_session.token,
        "redirect_url": payment_session.redirect_url,
    }


def error_payload(exc: Exception) -> dict:
    return {
        "error": str(exc) or "An unexpected error occurred",
        "details": f"{type(exc).__name__}: {exc}",
        "type": type(exc).__name__,
    }
