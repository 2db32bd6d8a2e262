import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import razorpay
from razorpay.errors import SignatureVerificationError

from app.config import settings

logger = logging.getLogger(__name__)

NOTE_VALUE_LIMIT = 256  # Razorpay caps each notes value


class PaymentGatewayError(Exception):
    pass


@dataclass
class PaymentSession:
    token: str
    redirect_url: Optional[str] = None


class PaymentGateway:
    """
    What the rest of the app needs from a payment provider.
    Passed around as a FastAPI dependency so tests can swap it.
    """

    key_id: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        raise NotImplementedError

    def create_transaction(
        self,
        order_id: str,
        amount: float,
        customer_details: Dict[str, Any],
        item_details: List[Dict[str, Any]],
    ) -> PaymentSession:
        raise NotImplementedError

    def verify_payment(self, token: str, payment_id: str, signature: str) -> bool:
        raise NotImplementedError

    def verify_webhook(self, body: str, signature: str) -> bool:
        raise NotImplementedError


class RazorpayGateway(PaymentGateway):

    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str],
        webhook_secret: Optional[str] = None,
        currency: str = "IDR",
    ):
        self.key_id = key_id
        self._key_secret = key_secret
        self._webhook_secret = webhook_secret
        self.currency = currency
        self._client = None

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self._key_secret)

    @property
    def client(self):
        if self._client is None:
            if not self.is_configured:
                raise PaymentGatewayError("Payment gateway key not configured")
            self._client = razorpay.Client(auth=(self.key_id, self._key_secret))
        return self._client

    def create_transaction(self, order_id, amount, customer_details, item_details):
        items_summary = ", ".join(
            f"{i.get('name')} x{i.get('quantity')}" for i in item_details
        )
        payload = {
            "amount": int(round(amount * 100)),  # minor units
            "currency": self.currency,
            "receipt": order_id,
            "notes": {
                "gateway_order_id": order_id,
                "customer_name": str(customer_details.get("first_name", ""))[:NOTE_VALUE_LIMIT],
                "customer_email": str(customer_details.get("email", ""))[:NOTE_VALUE_LIMIT],
                "customer_phone": str(customer_details.get("phone", ""))[:NOTE_VALUE_LIMIT],
                "items": items_summary[:NOTE_VALUE_LIMIT],
            },
        }

        logger.info(f"Creating Razorpay order {order_id} for amount {amount}")

        try:
            razorpay_order = self.client.order.create(payload)
        except PaymentGatewayError:
            raise
        except Exception as exc:
            logger.exception(f"Razorpay order creation failed for {order_id}")
            raise PaymentGatewayError(f"Razorpay API call failed: {exc}") from exc

        return PaymentSession(token=razorpay_order["id"], redirect_url=None)

    def verify_payment(self, token, payment_id, signature):
        try:
            result = self.client.utility.verify_payment_signature({
                "razorpay_order_id": token,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except SignatureVerificationError:
            logger.warning(f"Payment signature mismatch for {token}")
            return False
        return result is not False

    def verify_webhook(self, body, signature):
        if not self._webhook_secret:
            raise PaymentGatewayError("Webhook secret not configured")
        try:
            result = self.client.utility.verify_webhook_signature(
                body, signature, self._webhook_secret
            )
        except SignatureVerificationError:
            logger.warning("Webhook signature mismatch")
            return False
        return result is not False


def get_payment_gateway() -> PaymentGateway:
    # keys are read per request so a missing key only fails payment calls
    return RazorpayGateway(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        webhook_secret=settings.RAZORPAY_WEBHOOK_SECRET,
        currency=settings.PAYMENT_CURRENCY,
    )
