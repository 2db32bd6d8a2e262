from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session
from app.database import get_session
from app.models.user import User
from app.schemas.payment_schemas import (
    BatchPaymentRequest,
    PaymentOutcome,
    PaymentOutcomeRequest,
)
from app.services.cart_service import CartStore, get_cart_store
from app.services.order_event_service import get_order_timeline
from app.services.order_service import (
    cancel_order,
    get_user_order,
    serialize_order,
    user_orders_query,
)
from app.services.payment_function import get_function_session
from app.services.payment_gateway import PaymentGateway, get_payment_gateway
from app.services.payment_service import (
    confirm_client_payment,
    handle_outcome,
    pay_orders_in_batch,
    retry_payment,
)
from app.utils.pagination import paginate
from app.utils.token import get_current_user

router = APIRouter()


@router.get("/")
def my_orders(
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return paginate(
        session=session,
        query=user_orders_query(current_user, status),
        page=page,
        limit=limit,
        serialize=serialize_order,
    )


@router.get("/{order_id}")
def order_detail(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = get_user_order(session, order_id, current_user)
    data = serialize_order(order)
    data["timeline"] = [
        {"event": e.event_type, "label": e.label, "created_at": e.created_at}
        for e in get_order_timeline(session, order.id)
    ]
    return data


@router.post("/batch-payment")
def batch_payment(
    data: BatchPaymentRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    function_session: Optional[Session] = Depends(get_function_session),
):
    return pay_orders_in_batch(
        session, current_user, data.order_ids, gateway, function_session
    )


@router.post("/{order_id}/retry-payment")
def retry_order_payment(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    function_session: Optional[Session] = Depends(get_function_session),
):
    order = get_user_order(session, order_id, current_user)
    payment = retry_payment(session, order, current_user, gateway, function_session)
    return {"order_id": order.id, "payment": payment}


@router.post("/{order_id}/payment-outcome")
def report_payment_outcome(
    order_id: int,
    data: PaymentOutcomeRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    store: CartStore = Depends(get_cart_store),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    What the payment pop-up reported. Order rows only change here for a
    signed success; otherwise the webhook moves payment status.
    """
    order = get_user_order(session, order_id, current_user)

    if (
        data.outcome == PaymentOutcome.SUCCESS
        and data.razorpay_payment_id
        and data.razorpay_signature
    ):
        confirm_client_payment(
            session, order, gateway, data.razorpay_payment_id, data.razorpay_signature
        )
        session.refresh(order)

    # retry and batch pop-ups pay older orders, the live cart is not theirs
    notification = handle_outcome(data.outcome, store.get(current_user.id), data.source)

    return {
        "notification": notification,
        "order": serialize_order(order, include_items=False),
    }


@router.post("/{order_id}/cancel")
def cancel_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = get_user_order(session, order_id, current_user)
    order = cancel_order(session, order, current_user)
    return {"message": "Pesanan dibatalkan", "order": serialize_order(order, include_items=False)}
