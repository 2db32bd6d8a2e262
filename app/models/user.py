from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str = Field(default="parent")  # parent | cashier | admin
    can_login: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
