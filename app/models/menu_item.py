from sqlmodel import SQLModel, Field
from typing import Optional


class MenuItem(SQLModel, table=True):
    __tablename__ = "menu_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    price: float
    image_url: Optional[str] = None
    is_available: bool = Field(default=True)
