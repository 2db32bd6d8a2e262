import random
import string
import time

_ALPHABET = string.digits + string.ascii_lowercase


def generate_order_number(prefix: str = "ORDER") -> str:
    """
    '<prefix>-<epoch millis>-<9 base36 chars>'.
    Low collision odds, not checked against the store.
    """
    suffix = "".join(random.choices(_ALPHABET, k=9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"
