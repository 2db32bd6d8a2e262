import pytest
from razorpay.errors import SignatureVerificationError

from app.services.payment_gateway import PaymentGatewayError, RazorpayGateway


class _Orders:
    def __init__(self):
        self.payloads = []

    def create(self, payload):
        self.payloads.append(payload)
        return {"id": "order_rzp_1"}


class _Utility:
    def verify_payment_signature(self, params):
        if params["razorpay_signature"] != "ok":
            raise SignatureVerificationError("mismatch")
        return True

    def verify_webhook_signature(self, body, signature, secret):
        if signature != "ok":
            raise SignatureVerificationError("mismatch")
        return True


class _Client:
    def __init__(self):
        self.order = _Orders()
        self.utility = _Utility()


@pytest.fixture
def gateway():
    gw = RazorpayGateway("rzp_test", "secret", webhook_secret="whsec")
    gw._client = _Client()
    return gw


def test_create_transaction_sends_minor_units(gateway):
    session = gateway.create_transaction(
        "ORDER-1",
        35000,
        {"first_name": "Sari", "email": "s@example.com", "phone": "0812"},
        [{"name": "Nasi Ayam - Andi", "quantity": 2}],
    )

    payload = gateway.client.order.payloads[0]
    assert session.token == "order_rzp_1"
    assert payload["amount"] == 3500000
    assert payload["currency"] == "IDR"
    assert payload["receipt"] == "ORDER-1"
    assert payload["notes"]["items"] == "Nasi Ayam - Andi x2"


def test_long_notes_are_truncated(gateway):
    items = [{"name": "x" * 100, "quantity": 1} for _ in range(5)]
    gateway.create_transaction("ORDER-2", 1000, {}, items)

    assert len(gateway.client.order.payloads[0]["notes"]["items"]) == 256


def test_signature_checks(gateway):
    assert gateway.verify_payment("order_rzp_1", "pay_1", "ok") is True
    assert gateway.verify_payment("order_rzp_1", "pay_1", "bad") is False
    assert gateway.verify_webhook("{}", "ok") is True
    assert gateway.verify_webhook("{}", "bad") is False


def test_missing_keys():
    gw = RazorpayGateway(None, None)

    assert gw.is_configured is False
    with pytest.raises(PaymentGatewayError):
        gw.create_transaction("ORDER-3", 1000, {}, [])


def test_webhook_without_secret():
    gw = RazorpayGateway("rzp_test", "secret")

    with pytest.raises(PaymentGatewayError):
        gw.verify_webhook("{}", "sig")
