import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import create_db_and_tables
from app.routes import (
    admin_reports,
    cart,
    cashier,
    checkout,
    children,
    functions,
    health,
    menu,
    orders,
    webhooks,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Catering Ordering API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(menu.router, prefix="/menu", tags=["Menu"])
app.include_router(children.router, prefix="/children", tags=["Children"])
app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(cashier.router, prefix="/cashier", tags=["Cashier"])
app.include_router(admin_reports.router, prefix="/admin", tags=["Admin Reports"])
app.include_router(functions.router, prefix="/functions", tags=["Functions"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])

@app.get("/")
def root():
    return {
        "cart": [
            "/cart", "/cart/add", "/cart/update/{item_id}",
            "/cart/remove/{item_id}", "/cart/clear"
        ],
        "checkout": ["/checkout/summary", "/checkout/batch-order"],
        "orders": [
            "/orders", "/orders/{order_id}", "/orders/batch-payment",
            "/orders/{order_id}/retry-payment", "/orders/{order_id}/payment-outcome",
            "/orders/{order_id}/cancel"
        ],
        "cashier": [
            "/cashier/orders", "/cashier/pending-orders",
            "/cashier/orders/{order_id}/cash-payment", "/cashier/orders/{order_id}/mark-paid",
            "/cashier/orders/{order_id}/status", "/cashier/cash-payments",
            "/cashier/reports", "/cashier/reports/print"
        ],
        "admin": [
            "/admin/order-recap", "/admin/order-recap/print", "/admin/order-recap/export"
        ],
        "functions": ["/functions/create-payment"],
        "webhooks": ["/webhooks/razorpay"],
    }
