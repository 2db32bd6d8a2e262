import os
from datetime import date

# settings are read at import time
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ["ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import app.models  # noqa: F401
from app.database import get_session
from app.main import app
from app.models.child import Child
from app.models.menu_item import MenuItem
from app.models.order import Order
from app.models.order_line_item import OrderLineItem
from app.models.user import User
from app.services.cart_service import CartStore, get_cart_store
from app.services.payment_function import get_function_session
from app.services.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentSession,
    get_payment_gateway,
)
from app.utils.token import create_access_token


class FakeGateway(PaymentGateway):
    """Records calls instead of talking to Razorpay."""

    key_id = "rzp_test_key"

    def __init__(self):
        self.calls = []
        self.fail_with = None
        self.configured = True

    @property
    def is_configured(self):
        return self.configured

    def create_transaction(self, order_id, amount, customer_details, item_details):
        if self.fail_with:
            raise PaymentGatewayError(self.fail_with)
        self.calls.append({
            "order_id": order_id,
            "amount": amount,
            "customer_details": customer_details,
            "item_details": item_details,
        })
        return PaymentSession(
            token=f"order_fake_{len(self.calls)}",
            redirect_url=f"https://pay.example.test/{order_id}",
        )

    def verify_payment(self, token, payment_id, signature):
        return signature == "valid-signature"

    def verify_webhook(self, body, signature):
        return signature == "good-signature"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def cart_store():
    return CartStore()


@pytest.fixture
def function_session(session):
    # same database stands in for the function's own store connection
    return session


@pytest.fixture
def client(session, gateway, cart_store, function_session):
    def _get_session():
        yield session

    def _get_function_session():
        yield function_session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_cart_store] = lambda: cart_store
    app.dependency_overrides[get_function_session] = _get_function_session

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def _user(session, email, role, **kwargs):
    user = User(email=email, role=role, **kwargs)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def parent(session):
    return _user(session, "ibu.sari@example.com", "parent", full_name="Sari Wulandari", phone="081234000111")


@pytest.fixture
def other_parent(session):
    return _user(session, "budi@example.com", "parent")


@pytest.fixture
def cashier(session):
    return _user(session, "kasir@example.com", "cashier", full_name="Kasir Satu")


@pytest.fixture
def admin(session):
    return _user(session, "admin@example.com", "admin")


def auth_headers(user):
    token = create_access_token(user.id, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def parent_headers(parent):
    return auth_headers(parent)


@pytest.fixture
def cashier_headers(cashier):
    return auth_headers(cashier)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def children(session, parent):
    kids = [
        Child(user_id=parent.id, name="Andi", class_name="1A"),
        Child(user_id=parent.id, name="Bunga", class_name="3B"),
    ]
    session.add_all(kids)
    session.commit()
    for kid in kids:
        session.refresh(kid)
    return kids


@pytest.fixture
def menu(session):
    items = [
        MenuItem(name="Nasi Ayam", price=10000),
        MenuItem(name="Mie Goreng", price=15000),
        MenuItem(name="Soto Ayam", price=12000, is_available=False),
    ]
    session.add_all(items)
    session.commit()
    for item in items:
        session.refresh(item)
    return items


def make_order(
    session,
    user,
    lines,
    *,
    status="pending",
    payment_status="pending",
    payment_method=None,
    order_date=None,
    payment_token=None,
    order_number=None,
):
    """lines = [(menu name, qty, unit price, child name, class, delivery date)]"""
    total = sum(qty * price for _, qty, price, *_ in lines)
    order = Order(
        user_id=user.id,
        order_number=order_number or f"ORDER-TEST-{len(lines)}-{total}",
        total_amount=total,
        status=status,
        payment_status=payment_status,
        payment_method=payment_method,
        order_date=order_date or date.today(),
        payment_token=payment_token,
    )
    session.add(order)
    session.flush()

    for name, qty, price, child_name, child_class, delivery in lines:
        session.add(OrderLineItem(
            order_id=order.id,
            menu_item_id=1,
            menu_item_name=name,
            child_name=child_name,
            child_class=child_class,
            delivery_date=delivery,
            order_date=order.order_date,
            quantity=qty,
            unit_price=price,
            total_price=qty * price,
        ))

    session.commit()
    session.refresh(order)
    return order


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def order_factory(session):
    def _make(user, lines, **kwargs):
        return make_order(session, user, lines, **kwargs)
    return _make
