import logging
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException
from sqlmodel import Session, select

from app.constants.order_status import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    can_transition_payment,
)
from app.models.order import Order
from app.models.user import User
from app.schemas.checkout_schemas import PaymentSessionOut
from app.schemas.payment_schemas import (
    CreatePaymentRequest,
    PaymentOutcome,
    PaymentSource,
)
from app.services.cart_service import BatchCart
from app.services.order_event_service import OrderEventType, log_order_event
from app.services.payment_function import create_payment
from app.services.payment_gateway import PaymentGateway, PaymentGatewayError
from app.utils.order_number import generate_order_number

logger = logging.getLogger(__name__)


OUTCOME_NOTIFICATIONS = {
    PaymentOutcome.SUCCESS: {
        "title": "Pembayaran Berhasil!",
        "description": "Pesanan Anda telah dikonfirmasi dan sedang diproses.",
        "variant": "default",
        "clear_cart": True,
    },
    PaymentOutcome.PENDING: {
        "title": "Menunggu Pembayaran",
        "description": "Pembayaran Anda sedang diproses. Mohon tunggu konfirmasi.",
        "variant": "default",
        "clear_cart": True,
    },
    PaymentOutcome.ERROR: {
        "title": "Pembayaran Gagal",
        "description": "Terjadi kesalahan dalam proses pembayaran. Silakan coba lagi.",
        "variant": "destructive",
        "clear_cart": False,
    },
    PaymentOutcome.CLOSED: {
        "title": "Pembayaran Dibatalkan",
        "description": "Anda membatalkan proses pembayaran.",
        "variant": "default",
        "clear_cart": False,
    },
}


def handle_outcome(
    outcome: PaymentOutcome,
    cart: Optional[BatchCart] = None,
    source: PaymentSource = PaymentSource.CHECKOUT,
) -> dict:
    """Map a pop-up outcome to the notification shown and the cart effect."""
    notification = dict(OUTCOME_NOTIFICATIONS[PaymentOutcome(outcome)])
    if PaymentSource(source) != PaymentSource.CHECKOUT:
        notification["clear_cart"] = False

    if notification["clear_cart"] and cart is not None:
        cart.clear()

    logger.info(f"Payment pop-up outcome: {outcome} ({PaymentSource(source).value})")
    return notification


def build_customer_details(user: Optional[User]) -> dict:
    email = user.email if user else None
    return {
        "first_name": (user.full_name if user else None)
        or (email.split("@")[0] if email else None)
        or "Customer",
        "email": email or "parent@example.com",
        "phone": (user.phone if user else None) or "08123456789",
    }


def order_item_details(order: Order) -> List[dict]:
    return [
        {
            "id": str(li.id),
            "price": li.unit_price,
            "quantity": li.quantity,
            "name": f"{li.menu_item_name} - {li.child_name}",
        }
        for li in order.line_items
    ]


def apply_payment_transition(
    session: Session,
    order: Order,
    new_status: PaymentStatus,
    *,
    method: Optional[str] = None,
    created_by: str = "system",
    meta: Optional[dict] = None,
) -> bool:
    """
    Move order.payment_status along PAYMENT_TRANSITIONS.
    Returns False when already there. Caller commits.
    """
    new_status = PaymentStatus(new_status)

    if order.payment_status == new_status.value:
        return False

    if not can_transition_payment(order.payment_status, new_status):
        raise HTTPException(
            status_code=409,
            detail=f"Cannot change payment status from {order.payment_status} to {new_status.value}",
        )

    previous = order.payment_status
    order.payment_status = new_status.value

    if new_status == PaymentStatus.PAID:
        order.payment_method = method or order.payment_method or PaymentMethod.ONLINE.value
        # paid never stays pending in the kitchen
        if order.status == OrderStatus.PENDING.value:
            order.status = OrderStatus.CONFIRMED.value

    order.updated_at = datetime.utcnow()
    session.add(order)

    event_type = {
        PaymentStatus.PAID: OrderEventType.PAYMENT_SUCCESS,
        PaymentStatus.FAILED: OrderEventType.PAYMENT_FAILED,
        PaymentStatus.PENDING: OrderEventType.PAYMENT_RETRY,
    }[new_status]

    log_order_event(
        session,
        order_id=order.id,
        event_type=event_type,
        label=f"Payment {previous} -> {new_status.value}",
        created_by=created_by,
        meta=meta,
    )
    return True


def _invoke_payment_function(
    request: CreatePaymentRequest,
    gateway: PaymentGateway,
    store_session: Optional[Session],
) -> dict:
    try:
        return create_payment(request, gateway, store_session)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except (PaymentGatewayError, RuntimeError) as exc:
        logger.error(f"Payment function failed for {request.order_id}: {exc}")
        raise HTTPException(
            status_code=502,
            detail=str(exc) or "Gagal memproses pembayaran",
        )


def request_payment_session(
    session: Session,
    order: Order,
    user: Optional[User],
    gateway: PaymentGateway,
    store_session: Optional[Session] = None,
    *,
    gateway_order_id: str,
    item_details: Optional[List[dict]] = None,
    source: PaymentSource = PaymentSource.CHECKOUT,
) -> PaymentSessionOut:
    """Ask the payment function for a token and persist it on the order."""
    request = CreatePaymentRequest(
        order_id=gateway_order_id,
        amount=order.total_amount,
        customer_details=build_customer_details(user),
        item_details=item_details if item_details is not None else order_item_details(order),
    )

    logger.info(f"Creating payment for order {order.id} ({gateway_order_id}), amount {order.total_amount}")

    result = _invoke_payment_function(request, gateway, store_session)

    order.payment_token = result["snap_token"]
    order.gateway_order_id = gateway_order_id
    order.updated_at = datetime.utcnow()
    session.add(order)
    log_order_event(
        session,
        order_id=order.id,
        event_type=OrderEventType.PAYMENT_SESSION_CREATED,
        label="Payment session created",
        meta={"gateway_order_id": gateway_order_id},
    )
    session.commit()
    session.refresh(order)

    return PaymentSessionOut(
        token=result["snap_token"],
        redirect_url=result.get("redirect_url"),
        key_id=gateway.key_id,
        gateway_order_id=gateway_order_id,
        source=PaymentSource(source).value,
    )


def retry_payment(
    session: Session,
    order: Order,
    user: User,
    gateway: PaymentGateway,
    store_session: Optional[Session] = None,
) -> PaymentSessionOut:
    if order.payment_status == PaymentStatus.PAID.value:
        raise HTTPException(status_code=409, detail="Pesanan sudah dibayar")

    if order.status == OrderStatus.CANCELLED.value:
        raise HTTPException(status_code=409, detail="Pesanan sudah dibatalkan")

    # stored token: reopen the pop-up with it
    if order.payment_token:
        logger.info(f"Reusing payment token for order {order.id}")
        return PaymentSessionOut(
            token=order.payment_token,
            key_id=gateway.key_id,
            gateway_order_id=order.gateway_order_id,
            reused=True,
            source=PaymentSource.RETRY.value,
        )

    if order.payment_status == PaymentStatus.FAILED.value:
        apply_payment_transition(
            session, order, PaymentStatus.PENDING, created_by=f"user:{user.id}"
        )

    return request_payment_session(
        session,
        order,
        user,
        gateway,
        store_session,
        gateway_order_id=generate_order_number("ORDER"),
        source=PaymentSource.RETRY,
    )


def pay_orders_in_batch(
    session: Session,
    user: User,
    order_ids: List[int],
    gateway: PaymentGateway,
    store_session: Optional[Session] = None,
) -> dict:
    if not order_ids:
        raise HTTPException(
            status_code=400,
            detail="Tidak ada pesanan yang dipilih untuk dibayar",
        )

    orders = session.exec(
        select(Order)
        .where(Order.id.in_(order_ids))
        .where(Order.user_id == user.id)
        .order_by(Order.id)
    ).all()

    pending_orders = [
        o for o in orders
        if o.payment_status == PaymentStatus.PENDING.value
        and o.status != OrderStatus.CANCELLED.value
    ]

    if not pending_orders:
        raise HTTPException(
            status_code=400,
            detail="Tidak ada pesanan yang perlu dibayar",
        )

    total_amount = sum(o.total_amount for o in pending_orders)
    batch_id = generate_order_number("BATCH")

    item_details = []
    for order in pending_orders:
        for li in order.line_items:
            item_details.append({
                "id": f"{order.id}-{li.id}",
                "price": li.unit_price,
                "quantity": li.quantity,
                "name": f"{li.menu_item_name} - {li.child_name}",
            })

    logger.info(
        f"Creating batch payment {batch_id} for orders {[o.id for o in pending_orders]}, total {total_amount}"
    )

    result = _invoke_payment_function(
        CreatePaymentRequest(
            order_id=batch_id,
            amount=total_amount,
            customer_details=build_customer_details(user),
            item_details=item_details,
            batch_order_ids=[o.id for o in pending_orders],
        ),
        gateway,
        store_session,
    )

    # every order in the batch shares the token
    for order in pending_orders:
        meta = {"batch_id": batch_id}
        if order.payment_token and order.payment_token != result["snap_token"]:
            # a late webhook for the old session will not match this order any more
            meta["replaced_token"] = order.payment_token
            meta["replaced_gateway_order_id"] = order.gateway_order_id
            logger.warning(
                f"Order {order.id} token {order.payment_token} replaced by batch {batch_id}"
            )

        order.payment_token = result["snap_token"]
        order.gateway_order_id = batch_id
        order.updated_at = datetime.utcnow()
        session.add(order)
        log_order_event(
            session,
            order_id=order.id,
            event_type=OrderEventType.PAYMENT_SESSION_CREATED,
            label="Batch payment session created",
            meta=meta,
        )
    session.commit()

    return {
        "batch_id": batch_id,
        "order_ids": [o.id for o in pending_orders],
        "total_amount": total_amount,
        "payment": PaymentSessionOut(
            token=result["snap_token"],
            redirect_url=result.get("redirect_url"),
            key_id=gateway.key_id,
            gateway_order_id=batch_id,
            source=PaymentSource.BATCH.value,
        ),
    }


def orders_for_token(session: Session, token: str) -> List[Order]:
    return session.exec(select(Order).where(Order.payment_token == token)).all()


def settle_token(
    session: Session,
    token: str,
    new_status: PaymentStatus,
    *,
    created_by: str = "system",
    meta: Optional[dict] = None,
) -> List[Order]:
    """Apply a gateway result to every order paid with this token."""
    updated = []
    for order in orders_for_token(session, token):
        if order.payment_status == PaymentStatus(new_status).value:
            continue
        if not can_transition_payment(order.payment_status, new_status):
            logger.warning(
                f"Ignoring {new_status} for order {order.id} in state {order.payment_status}"
            )
            continue
        apply_payment_transition(
            session, order, new_status, created_by=created_by, meta=meta
        )
        updated.append(order)

    session.commit()
    return updated


def confirm_client_payment(
    session: Session,
    order: Order,
    gateway: PaymentGateway,
    payment_id: str,
    signature: str,
) -> List[Order]:
    if not order.payment_token:
        raise HTTPException(status_code=400, detail="Pesanan belum memiliki sesi pembayaran")

    try:
        verified = gateway.verify_payment(order.payment_token, payment_id, signature)
    except PaymentGatewayError as exc:
        raise HTTPException(status_code=502, detail=str(exc))

    if not verified:
        raise HTTPException(status_code=400, detail="Verifikasi pembayaran gagal")

    return settle_token(
        session,
        order.payment_token,
        PaymentStatus.PAID,
        created_by=f"user:{order.user_id}",
        meta={"payment_id": payment_id},
    )


def handle_webhook_event(session: Session, event: dict) -> dict:
    event_type = event.get("event")
    payload = event.get("payload") or {}
    payment_entity = (payload.get("payment") or {}).get("entity") or {}
    order_entity = (payload.get("order") or {}).get("entity") or {}

    if event_type in ("order.paid", "payment.captured"):
        token = order_entity.get("id") or payment_entity.get("order_id")
        new_status = PaymentStatus.PAID
    elif event_type == "payment.failed":
        token = payment_entity.get("order_id")
        new_status = PaymentStatus.FAILED
    else:
        logger.info(f"Ignoring webhook event {event_type}")
        return {"status": "ignored", "event": event_type}

    if not token:
        logger.warning(f"Webhook {event_type} without order reference")
        return {"status": "ignored", "event": event_type}

    updated = settle_token(
        session,
        token,
        new_status,
        created_by="webhook",
        meta={"event": event_type, "payment_id": payment_entity.get("id")},
    )

    logger.info(f"Webhook {event_type} for {token} updated {len(updated)} orders")
    return {"status": "ok", "event": event_type, "updated": [o.id for o in updated]}
