from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session, or_, select

from app.constants.order_status import OrderStatus, PaymentStatus
from app.database import get_session
from app.models.order import Order
from app.models.order_line_item import OrderLineItem
from app.models.user import User
from app.dependencies.roles import require_cashier
from app.schemas.cash_payment_schemas import (
    CashPaymentRequest,
    CounterPaymentRequest,
    OrderStatusUpdate,
)
from app.services.cash_payment_service import (
    cash_payment_history,
    record_cash_payment,
    record_counter_payment,
)
from app.services.order_service import (
    get_order_or_404,
    serialize_order,
    update_order_status,
)
from app.services.report_export import render_cashier_report_pdf
from app.services.report_service import (
    build_cashier_report,
    fetch_report_orders,
    require_date_range,
)
from app.utils.formatting import format_price

router = APIRouter()


def _search_orders(query, search: Optional[str]):
    if not search:
        return query
    like = f"%{search}%"
    matching = select(OrderLineItem.order_id).where(
        or_(
            OrderLineItem.child_name.ilike(like),
            OrderLineItem.child_class.ilike(like),
        )
    )
    return query.where(
        or_(Order.order_number.ilike(like), Order.id.in_(matching))
    )


@router.get("/orders")
def list_orders(
    payment_status: Optional[str] = None,
    search: Optional[str] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_cashier),
):
    query = select(Order).where(Order.status != OrderStatus.CANCELLED.value)

    if payment_status and payment_status != "all":
        query = query.where(Order.payment_status == payment_status)

    query = _search_orders(query, search)
    orders = session.exec(query.order_by(Order.created_at.desc(), Order.id.desc())).all()

    return [serialize_order(o) for o in orders]


@router.get("/pending-orders")
def pending_orders(
    search: Optional[str] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_cashier),
):
    query = select(Order).where(
        Order.payment_status.in_([PaymentStatus.PENDING.value, PaymentStatus.FAILED.value]),
        Order.status != OrderStatus.CANCELLED.value,
    )
    query = _search_orders(query, search)
    orders = session.exec(query.order_by(Order.created_at.desc(), Order.id.desc())).all()

    total_value = sum(o.total_amount for o in orders)
    return {
        "count": len(orders),
        "total_value": total_value,
        "total_value_display": format_price(total_value),
        "orders": [serialize_order(o) for o in orders],
    }


@router.post("/orders/{order_id}/cash-payment")
def cash_payment(
    order_id: int,
    data: CashPaymentRequest,
    session: Session = Depends(get_session),
    cashier: User = Depends(require_cashier),
):
    order = get_order_or_404(session, order_id)
    payment = record_cash_payment(session, order, data.received_amount, cashier)
    session.refresh(order)

    return {
        "message": f"Kembalian: {format_price(payment.change_amount)}",
        "cash_payment": {
            "id": payment.id,
            "order_id": payment.order_id,
            "amount": payment.amount,
            "received_amount": payment.received_amount,
            "change_amount": payment.change_amount,
            "payment_date": payment.payment_date,
            "notes": payment.notes,
        },
        "order": serialize_order(order, include_items=False),
    }


@router.post("/orders/{order_id}/mark-paid")
def counter_payment(
    order_id: int,
    data: CounterPaymentRequest,
    session: Session = Depends(get_session),
    cashier: User = Depends(require_cashier),
):
    order = get_order_or_404(session, order_id)
    order = record_counter_payment(session, order, data.method, cashier)
    return {
        "message": f"Pembayaran pesanan {order.order_number} berhasil diproses",
        "order": serialize_order(order, include_items=False),
    }


@router.patch("/orders/{order_id}/status")
def change_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    cashier: User = Depends(require_cashier),
):
    order = get_order_or_404(session, order_id)
    order = update_order_status(session, order, data.status, created_by=f"cashier:{cashier.id}")
    return serialize_order(order, include_items=False)


@router.get("/cash-payments")
def list_cash_payments(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_cashier),
):
    return cash_payment_history(session, start_date, end_date, search)


@router.get("/reports")
def cashier_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_cashier),
):
    require_date_range(start_date, end_date)
    report = build_cashier_report(fetch_report_orders(session, start_date, end_date))
    report["start_date"] = start_date
    report["end_date"] = end_date
    return report


@router.get("/reports/print")
def print_cashier_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_cashier),
):
    require_date_range(start_date, end_date)
    report = build_cashier_report(fetch_report_orders(session, start_date, end_date))
    pdf = render_cashier_report_pdf(report, start_date, end_date)

    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'inline; filename="laporan_kasir_{start_date}_{end_date}.pdf"'
        },
    )
