from collections import OrderedDict
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Tuple

from fastapi import HTTPException
from sqlmodel import Session, select

from app.constants.order_status import OrderStatus, PaymentMethod, PaymentStatus
from app.models.order import Order
from app.utils.formatting import format_date

TOP_ITEMS_LIMIT = 10


def group_menu_items(rows: Iterable[Tuple[str, int, float]]) -> List[dict]:
    """
    rows = (menu name, quantity, unit price)
    Sums per name, keeping first-seen order.
    """
    grouped = OrderedDict()
    for name, quantity, price in rows:
        entry = grouped.setdefault(name, {"name": name, "quantity": 0, "revenue": 0})
        entry["quantity"] += quantity
        entry["revenue"] += price * quantity
    return list(grouped.values())


def top_menu_items(groups: List[dict], limit: int = TOP_ITEMS_LIMIT) -> List[dict]:
    # sorted() is stable, ties keep first-seen order
    return sorted(groups, key=lambda g: g["quantity"], reverse=True)[:limit]


def _line_rows(orders: Iterable[Order]):
    for order in orders:
        for li in order.line_items:
            yield li, (li.menu_item_name, li.quantity, li.unit_price)


def is_cash_payment(order: Order) -> bool:
    return (
        order.payment_status == PaymentStatus.PAID.value
        and order.payment_method == PaymentMethod.CASH.value
    )


def build_cashier_report(orders: List[Order]) -> dict:
    total_orders = len(orders)
    total_revenue = sum(o.total_amount or 0 for o in orders)
    total_cash = sum(o.total_amount for o in orders if is_cash_payment(o))

    daily = OrderedDict()
    for order in orders:
        key = order.order_date.isoformat()
        entry = daily.setdefault(
            key, {"date": key, "orders": 0, "revenue": 0, "cash_payments": 0}
        )
        entry["orders"] += 1
        entry["revenue"] += order.total_amount or 0
        if is_cash_payment(order):
            entry["cash_payments"] += order.total_amount

    groups = group_menu_items(row for _, row in _line_rows(orders))

    return {
        "total_orders": total_orders,
        "total_revenue": total_revenue,
        "total_cash_payments": total_cash,
        "total_online_payments": total_revenue - total_cash,
        "average_order_value": total_revenue / total_orders if total_orders else 0,
        "top_menu_items": top_menu_items(groups),
        "daily_summary": sorted(daily.values(), key=lambda d: d["date"], reverse=True),
    }


def _grouped_by(orders: List[Order], key_fn, label_fn) -> List[dict]:
    buckets = OrderedDict()
    for li, row in _line_rows(orders):
        key = key_fn(li)
        buckets.setdefault(key, {"orders": set(), "rows": []})
        buckets[key]["orders"].add(li.order_id)
        buckets[key]["rows"].append(row)

    result = []
    for key, bucket in buckets.items():
        items = group_menu_items(bucket["rows"])
        result.append({
            "key": key,
            "label": label_fn(key),
            "order_count": len(bucket["orders"]),
            "quantity": sum(i["quantity"] for i in items),
            "revenue": sum(i["revenue"] for i in items),
            "items": items,
        })
    return result


def build_order_recap(orders: List[Order]) -> dict:
    """Menu totals plus the same totals per delivery date and per class."""
    menu_items = group_menu_items(row for _, row in _line_rows(orders))

    by_date = _grouped_by(
        orders,
        key_fn=lambda li: li.delivery_date.isoformat(),
        label_fn=format_date,
    )
    by_date.sort(key=lambda g: g["key"])

    by_class = _grouped_by(
        orders,
        key_fn=lambda li: li.child_class or "-",
        label_fn=lambda c: f"Kelas {c}" if c != "-" else "Tanpa Kelas",
    )

    return {
        "total_orders": len(orders),
        "total_quantity": sum(i["quantity"] for i in menu_items),
        "total_revenue": sum(i["revenue"] for i in menu_items),
        "menu_items": menu_items,
        "by_date": by_date,
        "by_class": by_class,
    }


def require_date_range(start_date: Optional[date], end_date: Optional[date]):
    if not start_date or not end_date:
        raise HTTPException(status_code=400, detail="Mohon pilih tanggal mulai dan akhir")
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="Tanggal mulai melewati tanggal akhir")


def fetch_report_orders(session: Session, start_date: date, end_date: date) -> List[Order]:
    return session.exec(
        select(Order)
        .where(Order.order_date >= start_date)
        .where(Order.order_date <= end_date)
        .where(Order.status != OrderStatus.CANCELLED.value)
        .order_by(Order.created_at)
    ).all()


def fetch_recap_orders(
    session: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Order]:
    query = select(Order).where(Order.status != OrderStatus.CANCELLED.value)
    if start_date:
        query = query.where(Order.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.where(Order.created_at <= datetime.combine(end_date, time.max))
    return session.exec(query.order_by(Order.created_at.desc(), Order.id.desc())).all()
