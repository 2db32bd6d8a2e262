from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class BatchOrder(SQLModel, table=True):
    __tablename__ = "batch_orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    batch_id: str = Field(index=True)
    order_id: int = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
