from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    ONLINE = "online"
    CASH = "cash"
    DEBIT = "debit"
    CREDIT = "credit"
    TRANSFER = "transfer"
    DIGITAL = "digital"


# methods a cashier can record at the counter
COUNTER_METHODS = {
    PaymentMethod.CASH,
    PaymentMethod.DEBIT,
    PaymentMethod.CREDIT,
    PaymentMethod.TRANSFER,
    PaymentMethod.DIGITAL,
}


ALLOWED_TRANSITIONS = {
    "pending": ["confirmed", "cancelled"],
    "confirmed": ["preparing", "cancelled"],
    "preparing": ["delivered"],
    "delivered": [],
    "cancelled": []
}

PAYMENT_TRANSITIONS = {
    "pending": ["paid", "failed"],
    "failed": ["pending", "paid"],
    "paid": []
}


STATUS_LABELS = {
    "pending": "Menunggu",
    "confirmed": "Dikonfirmasi",
    "preparing": "Disiapkan",
    "delivered": "Selesai",
    "cancelled": "Dibatalkan",
}

STATUS_COLORS = {
    "pending": "yellow",
    "confirmed": "blue",
    "preparing": "purple",
    "delivered": "green",
    "cancelled": "red",
}

PAYMENT_STATUS_LABELS = {
    "pending": "Belum Bayar",
    "paid": "Lunas",
    "failed": "Gagal",
}

PAYMENT_STATUS_COLORS = {
    "pending": "orange",
    "paid": "green",
    "failed": "red",
}

PAYMENT_METHOD_LABELS = {
    "online": "Pembayaran Online",
    "cash": "Tunai",
    "debit": "Kartu Debit",
    "credit": "Kartu Kredit",
    "transfer": "Transfer Bank",
    "digital": "E-Wallet",
}


def _code(value) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def get_status_text(status) -> str:
    code = _code(status)
    return STATUS_LABELS.get(code, code)


def get_status_color(status) -> str:
    return STATUS_COLORS.get(_code(status), "gray")


def get_payment_status_text(status) -> str:
    code = _code(status)
    return PAYMENT_STATUS_LABELS.get(code, code)


def get_payment_status_color(status) -> str:
    return PAYMENT_STATUS_COLORS.get(_code(status), "gray")


def get_payment_method_text(method) -> str:
    if method is None:
        return "-"
    code = _code(method)
    return PAYMENT_METHOD_LABELS.get(code, code)


def can_transition(current, new) -> bool:
    return _code(new) in ALLOWED_TRANSITIONS.get(_code(current), [])


def can_transition_payment(current, new) -> bool:
    return _code(new) in PAYMENT_TRANSITIONS.get(_code(current), [])
