import logging
from datetime import date, datetime, time
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.constants.order_status import (
    COUNTER_METHODS,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from app.models.cash_payment import CashPayment
from app.models.order import Order
from app.models.user import User
from app.services.order_event_service import OrderEventType, log_order_event
from app.services.payment_service import apply_payment_transition

logger = logging.getLogger(__name__)


def calculate_change(total: float, received: float) -> float:
    if received < total:
        raise ValueError("Received amount is less than the total")
    return received - total


def _ensure_payable(order: Order):
    if order.payment_status == PaymentStatus.PAID.value:
        raise HTTPException(status_code=409, detail="Pesanan sudah dibayar")
    if order.status == OrderStatus.CANCELLED.value:
        raise HTTPException(status_code=409, detail="Pesanan sudah dibatalkan")


def _confirm_at_counter(order: Order):
    # settled at the counter always lands on confirmed, whatever the kitchen status
    if order.status != OrderStatus.CONFIRMED.value:
        order.status = OrderStatus.CONFIRMED.value
        order.updated_at = datetime.utcnow()


def record_cash_payment(
    session: Session,
    order: Order,
    received_amount: float,
    cashier: Optional[User] = None,
) -> CashPayment:
    """
    Settle an order in cash. The settlement row and the order status
    change commit together.
    """
    _ensure_payable(order)

    try:
        change = calculate_change(order.total_amount, received_amount)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail="Jumlah yang diterima kurang dari total pembayaran",
        )

    cash_payment = CashPayment(
        order_id=order.id,
        cashier_id=cashier.id if cashier else None,
        amount=order.total_amount,
        received_amount=received_amount,
        change_amount=change,
        payment_date=datetime.utcnow(),
        notes=f"Pembayaran tunai untuk pesanan {order.order_number}",
    )

    try:
        session.add(cash_payment)
        apply_payment_transition(
            session,
            order,
            PaymentStatus.PAID,
            method=PaymentMethod.CASH.value,
            created_by=f"cashier:{cashier.id}" if cashier else "cashier",
            meta={"received_amount": received_amount, "change_amount": change},
        )
        _confirm_at_counter(order)
        log_order_event(
            session,
            order_id=order.id,
            event_type=OrderEventType.CASH_PAYMENT,
            label=f"Cash received {received_amount}, change {change}",
            created_by=f"cashier:{cashier.id}" if cashier else "cashier",
        )
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Error recording cash payment for order {order.id}")
        raise

    session.refresh(cash_payment)
    logger.info(f"Cash payment {cash_payment.id} recorded for order {order.id}, change {change}")
    return cash_payment


def record_counter_payment(
    session: Session,
    order: Order,
    method: PaymentMethod,
    cashier: Optional[User] = None,
) -> Order:
    """Non-cash payment taken at the counter (card, transfer, e-wallet)."""
    method = PaymentMethod(method)

    if method not in COUNTER_METHODS:
        raise HTTPException(status_code=400, detail="Metode pembayaran tidak valid")

    if method == PaymentMethod.CASH:
        raise HTTPException(
            status_code=400,
            detail="Gunakan pembayaran tunai untuk mencatat uang diterima",
        )

    _ensure_payable(order)

    apply_payment_transition(
        session,
        order,
        PaymentStatus.PAID,
        method=method.value,
        created_by=f"cashier:{cashier.id}" if cashier else "cashier",
    )
    _confirm_at_counter(order)
    log_order_event(
        session,
        order_id=order.id,
        event_type=OrderEventType.COUNTER_PAYMENT,
        label=f"Paid at counter ({method.value})",
        created_by=f"cashier:{cashier.id}" if cashier else "cashier",
    )
    session.commit()
    session.refresh(order)
    return order


def cash_payment_history(
    session: Session,
    start_date: Optional[date],
    end_date: Optional[date],
    search: Optional[str] = None,
) -> dict:
    if not start_date or not end_date:
        raise HTTPException(
            status_code=400,
            detail="Mohon pilih tanggal mulai dan akhir",
        )

    rows = session.exec(
        select(CashPayment, Order)
        .join(Order, Order.id == CashPayment.order_id)
        .where(CashPayment.payment_date >= datetime.combine(start_date, time.min))
        .where(CashPayment.payment_date <= datetime.combine(end_date, time(23, 59, 59)))
        .order_by(CashPayment.payment_date.desc())
    ).all()

    results = []
    for payment, order in rows:
        children = sorted({li.child_name for li in order.line_items})
        classes = sorted({li.child_class for li in order.line_items if li.child_class})
        results.append({
            "id": payment.id,
            "order_id": order.id,
            "order_number": order.order_number,
            "amount": payment.amount,
            "received_amount": payment.received_amount,
            "change_amount": payment.change_amount,
            "payment_date": payment.payment_date,
            "notes": payment.notes,
            "child_names": children,
            "child_classes": classes,
            "order_total": order.total_amount,
        })

    if search:
        term = search.lower()
        results = [
            r for r in results
            if any(term in name.lower() for name in r["child_names"])
            or any(term in c.lower() for c in r["child_classes"])
            or term in (r["notes"] or "").lower()
        ]

    return {
        "payments": results,
        "total_amount": sum(r["amount"] for r in results),
        "total_received": sum(r["received_amount"] for r in results),
        "total_change": sum(r["change_amount"] for r in results),
    }
