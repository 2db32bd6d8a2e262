# app/services/order_event_service.py

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4
from sqlmodel import Session, select
from app.models.order_event import OrderEvent


class OrderEventType(str, Enum):
    ORDER_PLACED = "order_placed"
    PAYMENT_SESSION_CREATED = "payment_session_created"
    PAYMENT_SUCCESS = "payment_success"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_RETRY = "payment_retry"
    CASH_PAYMENT = "cash_payment"
    COUNTER_PAYMENT = "counter_payment"
    STATUS_CHANGED = "status_changed"
    CANCELLED = "cancelled"


def log_order_event(
    session: Session,
    order_id: int,
    event_type: str,
    label: str,
    created_by: str = "system",
    meta: Optional[dict] = None,
):
    """
    Append-only event log for order timeline.
    Caller owns the commit.
    """

    event = OrderEvent(
        id=str(uuid4()),
        order_id=order_id,
        event_type=getattr(event_type, "value", event_type),
        label=label,
        meta=meta,
        created_by=created_by,
        created_at=datetime.utcnow(),
    )

    session.add(event)
    return event


def get_order_timeline(session: Session, order_id: int):
    return session.exec(
        select(OrderEvent)
        .where(OrderEvent.order_id == order_id)
        .order_by(OrderEvent.created_at)
    ).all()
