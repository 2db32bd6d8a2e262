from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from enum import Enum


class PaymentOutcome(str, Enum):
    SUCCESS = "success"
    PENDING = "pending"
    ERROR = "error"
    CLOSED = "closed"


class PaymentSource(str, Enum):
    CHECKOUT = "checkout"
    RETRY = "retry"
    BATCH = "batch"


class PaymentOutcomeRequest(BaseModel):
    outcome: PaymentOutcome
    # which pop-up reported; only the checkout one owns the cart
    source: PaymentSource = PaymentSource.CHECKOUT
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None


class BatchPaymentRequest(BaseModel):
    order_ids: List[int]


class CreatePaymentRequest(BaseModel):
    """Body of the create-payment function. Wire names are camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[str] = Field(default=None, alias="orderId")
    amount: Optional[float] = None
    customer_details: Optional[Dict[str, Any]] = Field(default=None, alias="customerDetails")
    item_details: Optional[List[Dict[str, Any]]] = Field(default=None, alias="itemDetails")
    batch_order_ids: Optional[List[int]] = Field(default=None, alias="batchOrderIds")


class CreatePaymentResponse(BaseModel):
    snap_token: str
    redirect_url: Optional[str] = None
