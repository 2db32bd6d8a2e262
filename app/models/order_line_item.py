from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import date

if TYPE_CHECKING:
    from app.models.order import Order


class OrderLineItem(SQLModel, table=True):
    __tablename__ = "order_line_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)
    menu_item_id: int = Field(foreign_key="menu_items.id")

    menu_item_name: str
    child_id: Optional[int] = Field(default=None, foreign_key="children.id")
    child_name: str
    child_class: Optional[str] = None

    delivery_date: date = Field(index=True)
    order_date: date

    quantity: int
    unit_price: float
    total_price: Optional[float] = None
    notes: Optional[str] = None

    order: Optional["Order"] = Relationship(back_populates="line_items")
