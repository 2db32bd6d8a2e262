# app/schemas/checkout_schemas.py
from pydantic import BaseModel
from typing import Optional


class BatchOrderRequest(BaseModel):
    parent_notes: Optional[str] = None


class PaymentSessionOut(BaseModel):
    token: str
    redirect_url: Optional[str] = None
    key_id: Optional[str] = None     # public key the pop-up needs
    gateway_order_id: Optional[str] = None
    reused: bool = False
    source: str = "checkout"   # echoed back in the payment-outcome call
