from datetime import date
from typing import Optional
from sqlmodel import SQLModel

class CartAddRequest(SQLModel):
    menu_item_id: int
    child_id: int
    delivery_date: date
    quantity: int = 1
    notes: Optional[str] = None

class CartUpdateRequest(SQLModel):
    quantity: int
