from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class CashPayment(SQLModel, table=True):
    __tablename__ = "cash_payments"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)
    cashier_id: Optional[int] = Field(default=None, foreign_key="users.id")

    amount: float
    received_amount: float
    change_amount: float

    payment_date: datetime = Field(default_factory=datetime.utcnow, index=True)
    notes: Optional[str] = None
