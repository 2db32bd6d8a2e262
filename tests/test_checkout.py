from sqlmodel import select

from app.models.order import Order
from app.models.order_event import OrderEvent
from app.models.order_item import OrderItem
from app.models.order_line_item import OrderLineItem


def _fill_cart(client, headers, menu, children):
    # Nasi Ayam x2 for Andi on Monday, Mie Goreng x1 for Bunga on Tuesday
    for _ in range(2):
        client.post("/cart/add", json={
            "menu_item_id": menu[0].id,
            "child_id": children[0].id,
            "delivery_date": "2025-10-06",
        }, headers=headers)
    client.post("/cart/add", json={
        "menu_item_id": menu[1].id,
        "child_id": children[1].id,
        "delivery_date": "2025-10-07",
        "notes": "tanpa sayur",
    }, headers=headers)


def test_checkout_summary_matches_cart(client, parent_headers, menu, children):
    _fill_cart(client, parent_headers, menu, children)

    summary = client.get("/checkout/summary", headers=parent_headers).json()
    assert summary["total_items"] == 3
    assert summary["total_amount"] == 35000


def test_batch_order_creates_single_order(client, session, gateway, parent, parent_headers, menu, children):
    _fill_cart(client, parent_headers, menu, children)

    res = client.post(
        "/checkout/batch-order",
        json={"parent_notes": "antar ke kelas"},
        headers=parent_headers,
    )
    assert res.status_code == 200
    body = res.json()

    order = session.get(Order, body["order"]["id"])
    assert order.user_id == parent.id
    assert order.total_amount == 35000
    assert order.status == "pending"
    assert order.payment_status == "pending"
    assert order.parent_notes == "antar ke kelas"
    assert order.order_number.startswith("ORDER-")
    assert order.payment_token == body["payment"]["token"]
    assert order.gateway_order_id == order.order_number

    lines = session.exec(select(OrderLineItem).where(OrderLineItem.order_id == order.id)).all()
    assert sorted((li.child_name, li.quantity, li.total_price) for li in lines) == [
        ("Andi", 2, 20000),
        ("Bunga", 1, 15000),
    ]
    assert all(li.child_class for li in lines)

    legacy = session.exec(select(OrderItem).where(OrderItem.order_id == order.id)).all()
    assert len(legacy) == 2

    assert body["order"]["total_display"] == "Rp 35.000"
    assert [g["delivery_date"] for g in body["order"]["delivery_groups"]] == ["2025-10-06", "2025-10-07"]


def test_batch_order_sends_item_details_to_gateway(client, gateway, parent_headers, menu, children):
    _fill_cart(client, parent_headers, menu, children)
    client.post("/checkout/batch-order", headers=parent_headers)

    call = gateway.calls[0]
    assert call["amount"] == 35000
    assert "Nasi Ayam - Andi (2025-10-06)" in [i["name"] for i in call["item_details"]]
    assert sum(i["price"] * i["quantity"] for i in call["item_details"]) == 35000
    assert call["customer_details"]["first_name"] == "Sari Wulandari"
    assert call["customer_details"]["email"] == "ibu.sari@example.com"


def test_cart_kept_after_checkout_until_outcome(client, parent_headers, menu, children):
    _fill_cart(client, parent_headers, menu, children)
    client.post("/checkout/batch-order", headers=parent_headers)

    assert client.get("/cart/", headers=parent_headers).json()["total_items"] == 3


def test_batch_order_logs_timeline(client, session, parent_headers, menu, children):
    _fill_cart(client, parent_headers, menu, children)
    order_id = client.post("/checkout/batch-order", headers=parent_headers).json()["order"]["id"]

    events = session.exec(select(OrderEvent).where(OrderEvent.order_id == order_id)).all()
    assert {e.event_type for e in events} == {"order_placed", "payment_session_created"}

    detail = client.get(f"/orders/{order_id}", headers=parent_headers).json()
    assert [e["event"] for e in detail["timeline"]][0] == "order_placed"


def test_empty_cart_rejected(client, session, parent_headers):
    res = client.post("/checkout/batch-order", headers=parent_headers)

    assert res.status_code == 400
    assert res.json()["detail"] == "Keranjang kosong"
    assert session.exec(select(Order)).all() == []


def test_gateway_failure_keeps_pending_order(client, session, gateway, parent_headers, menu, children):
    _fill_cart(client, parent_headers, menu, children)
    gateway.fail_with = "Gateway unavailable"

    res = client.post("/checkout/batch-order", headers=parent_headers)

    assert res.status_code == 502
    detail = res.json()["detail"]
    assert detail["message"] == "Gateway unavailable"

    order = session.get(Order, detail["order_id"])
    assert order.payment_status == "pending"
    assert order.payment_token is None
    # cart untouched so the parent can try again
    assert client.get("/cart/", headers=parent_headers).json()["total_items"] == 3


def test_unconfigured_gateway_reported(client, gateway, parent_headers, menu, children):
    _fill_cart(client, parent_headers, menu, children)
    gateway.configured = False

    res = client.post("/checkout/batch-order", headers=parent_headers)

    assert res.status_code == 502
    assert "not configured" in res.json()["detail"]["message"]


def test_orders_list_is_scoped_to_user(client, parent_headers, other_parent, headers_for, menu, children):
    _fill_cart(client, parent_headers, menu, children)
    client.post("/checkout/batch-order", headers=parent_headers)

    mine = client.get("/orders/", headers=parent_headers).json()
    theirs = client.get("/orders/", headers=headers_for(other_parent)).json()

    assert mine["total_items"] == 1
    assert theirs["total_items"] == 0
