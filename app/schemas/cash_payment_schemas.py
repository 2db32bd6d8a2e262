from pydantic import BaseModel, Field

from app.constants.order_status import OrderStatus, PaymentMethod


class CashPaymentRequest(BaseModel):
    received_amount: float = Field(ge=0)


class CounterPaymentRequest(BaseModel):
    method: PaymentMethod


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
