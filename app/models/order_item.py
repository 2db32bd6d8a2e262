from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.order import Order


class OrderItem(SQLModel, table=True):
    """Legacy single-item rows. Child and delivery date live on the line items."""

    __tablename__ = "order_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)
    menu_item_id: int = Field(foreign_key="menu_items.id")

    price: float
    quantity: int

    order: Optional["Order"] = Relationship(back_populates="legacy_items")
