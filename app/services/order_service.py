import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.constants.order_status import (
    OrderStatus,
    PaymentStatus,
    can_transition,
    get_payment_method_text,
    get_payment_status_color,
    get_payment_status_text,
    get_status_color,
    get_status_text,
)
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.order_line_item import OrderLineItem
from app.models.user import User
from app.services.cart_service import BatchCart
from app.services.order_event_service import OrderEventType, log_order_event
from app.services.payment_gateway import PaymentGateway
from app.services.payment_service import request_payment_session
from app.utils.formatting import format_date, format_price
from app.utils.order_number import generate_order_number

logger = logging.getLogger(__name__)


def serialize_line_item(li: OrderLineItem) -> dict:
    return {
        "id": li.id,
        "menu_item_id": li.menu_item_id,
        "menu_item_name": li.menu_item_name,
        "child_id": li.child_id,
        "child_name": li.child_name,
        "child_class": li.child_class,
        "delivery_date": li.delivery_date.isoformat(),
        "order_date": li.order_date.isoformat(),
        "quantity": li.quantity,
        "unit_price": li.unit_price,
        "total_price": li.total_price if li.total_price is not None else li.unit_price * li.quantity,
        "notes": li.notes,
    }


def serialize_order(order: Order, include_items: bool = True) -> dict:
    data = {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "total_amount": order.total_amount,
        "total_display": format_price(order.total_amount),
        "status": order.status,
        "status_label": get_status_text(order.status),
        "status_color": get_status_color(order.status),
        "payment_status": order.payment_status,
        "payment_status_label": get_payment_status_text(order.payment_status),
        "payment_status_color": get_payment_status_color(order.payment_status),
        "payment_method": order.payment_method,
        "payment_method_label": get_payment_method_text(order.payment_method),
        "order_date": order.order_date.isoformat() if order.order_date else None,
        "created_at": order.created_at,
        "created_display": format_date(order.created_at),
        "parent_notes": order.parent_notes,
        "gateway_order_id": order.gateway_order_id,
        "has_payment_token": bool(order.payment_token),
    }

    if include_items:
        items = [serialize_line_item(li) for li in order.line_items]
        groups = OrderedDict()
        for item in sorted(items, key=lambda i: i["delivery_date"]):
            groups.setdefault(item["delivery_date"], []).append(item)

        data["line_items"] = items
        data["delivery_groups"] = [
            {"delivery_date": d, "delivery_display": format_date(d), "items": group}
            for d, group in groups.items()
        ]

    return data


def submit_batch_order(
    session: Session,
    user: User,
    cart: BatchCart,
    gateway: PaymentGateway,
    store_session: Optional[Session] = None,
    parent_notes: Optional[str] = None,
) -> dict:
    """
    One order header for the whole cart, its line items and the legacy
    item rows in a single transaction, then a payment session.
    """
    if len(cart) == 0:
        raise HTTPException(status_code=400, detail="Keranjang kosong")

    items = cart.items
    total_amount = cart.total_amount()
    order_number = generate_order_number("ORDER")
    today = date.today()

    logger.info(f"Creating batch order {order_number} with {len(items)} cart items")

    try:
        order = Order(
            user_id=user.id,
            order_number=order_number,
            total_amount=total_amount,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            order_date=today,
            parent_notes=parent_notes or None,
            gateway_order_id=order_number,
        )
        session.add(order)
        session.flush()

        for item in items:
            session.add(OrderLineItem(
                order_id=order.id,
                menu_item_id=item.menu_item_id,
                menu_item_name=item.name,
                child_id=item.child_id,
                child_name=item.child_name,
                child_class=item.child_class,
                delivery_date=item.delivery_date,
                order_date=today,
                quantity=item.quantity,
                unit_price=item.price,
                total_price=item.line_total,
                notes=item.notes,
            ))

        # legacy rows for older readers
        for item in items:
            session.add(OrderItem(
                order_id=order.id,
                menu_item_id=item.menu_item_id,
                quantity=item.quantity,
                price=item.price,
            ))

        log_order_event(
            session,
            order_id=order.id,
            event_type=OrderEventType.ORDER_PLACED,
            label="Order placed",
            created_by=f"user:{user.id}",
            meta={"items": len(items), "total_amount": total_amount},
        )
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception(f"Error creating batch order {order_number}")
        raise HTTPException(status_code=500, detail="Gagal membuat pesanan") from exc

    session.refresh(order)
    logger.info(f"Order {order.id} ({order_number}) created")

    item_details = [
        {
            "id": item.id,
            "price": item.price,
            "quantity": item.quantity,
            "name": f"{item.name} - {item.child_name} ({item.delivery_date.isoformat()})",
        }
        for item in items
    ]

    try:
        payment = request_payment_session(
            session,
            order,
            user,
            gateway,
            store_session,
            gateway_order_id=order_number,
            item_details=item_details,
        )
    except HTTPException as exc:
        # order stays pending; the client can pay it later through retry
        raise HTTPException(
            status_code=exc.status_code,
            detail={"message": exc.detail, "order_id": order.id},
        ) from exc

    return {
        "message": "Pesanan dibuat, silakan selesaikan pembayaran",
        "order": serialize_order(order),
        "payment": payment,
    }


def get_user_order(session: Session, order_id: int, user: User) -> Order:
    order = session.get(Order, order_id)
    if not order or order.user_id != user.id:
        raise HTTPException(status_code=404, detail="Pesanan tidak ditemukan")
    return order


def get_order_or_404(session: Session, order_id: int) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Pesanan tidak ditemukan")
    return order


def user_orders_query(user: User, status: Optional[str] = None):
    query = select(Order).where(Order.user_id == user.id)
    if status and status != "all":
        query = query.where(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc())


def update_order_status(
    session: Session,
    order: Order,
    new_status: OrderStatus,
    created_by: str = "system",
) -> Order:
    new_status = OrderStatus(new_status)

    if not can_transition(order.status, new_status):
        raise HTTPException(
            status_code=400,
            detail=f"Cannot change status from {order.status} to {new_status.value}",
        )

    previous = order.status
    order.status = new_status.value
    order.updated_at = datetime.utcnow()
    session.add(order)

    log_order_event(
        session,
        order_id=order.id,
        event_type=(
            OrderEventType.CANCELLED
            if new_status == OrderStatus.CANCELLED
            else OrderEventType.STATUS_CHANGED
        ),
        label=f"Status {previous} -> {new_status.value}",
        created_by=created_by,
    )
    session.commit()
    session.refresh(order)
    return order


def cancel_order(session: Session, order: Order, user: User) -> Order:
    if order.payment_status == PaymentStatus.PAID.value or order.status != OrderStatus.PENDING.value:
        raise HTTPException(
            status_code=409,
            detail="Pesanan tidak dapat dibatalkan",
        )
    return update_order_status(
        session, order, OrderStatus.CANCELLED, created_by=f"user:{user.id}"
    )
