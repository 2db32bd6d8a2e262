from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import date, datetime

from app.models.order_item import OrderItem
from app.models.order_line_item import OrderLineItem


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    order_number: str = Field(index=True)

    total_amount: float

    status: str = Field(default="pending", index=True)
    payment_status: str = Field(default="pending", index=True)
    payment_method: Optional[str] = Field(default=None)

    order_date: date = Field(default_factory=date.today, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    parent_notes: Optional[str] = None

    gateway_order_id: Optional[str] = Field(default=None, index=True)
    payment_token: Optional[str] = Field(default=None, index=True)

    line_items: List["OrderLineItem"] = Relationship(back_populates="order")
    # written at checkout for older readers, not read by this service
    legacy_items: List["OrderItem"] = Relationship(back_populates="order")
