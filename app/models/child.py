from sqlmodel import SQLModel, Field
from typing import Optional


class Child(SQLModel, table=True):
    __tablename__ = "children"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    name: str
    class_name: str
