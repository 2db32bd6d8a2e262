from datetime import date, datetime
from typing import Optional, Union

SHORT_MONTHS = [
    "Jan", "Feb", "Mar", "Apr", "Mei", "Jun",
    "Jul", "Agu", "Sep", "Okt", "Nov", "Des",
]

LONG_MONTHS = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]

DateLike = Union[date, datetime, str]


def format_price(amount: Optional[float]) -> str:
    """Rupiah without fraction digits: 35000 -> 'Rp 35.000'."""
    if amount is None:
        amount = 0
    value = int(round(abs(amount)))
    grouped = f"{value:,}".replace(",", ".")
    sign = "-" if amount < 0 and value else ""
    return f"{sign}Rp {grouped}"


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # ISO strings, with or without a time part / trailing Z
    text = value.strip().replace("Z", "+00:00")
    if "T" in text or " " in text:
        return datetime.fromisoformat(text).date()
    return date.fromisoformat(text)


def format_date(value: DateLike) -> str:
    d = _to_date(value)
    return f"{d.day:02d} {SHORT_MONTHS[d.month - 1]} {d.year}"


def format_long_date(value: DateLike) -> str:
    d = _to_date(value)
    return f"{d.day:02d} {LONG_MONTHS[d.month - 1]} {d.year}"
