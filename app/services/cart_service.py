from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, List, Optional, Union


def make_cart_key(menu_item_id, delivery_date: Union[date, str], child_id) -> str:
    """Cart identity: menu item + delivery date + child."""
    if isinstance(delivery_date, date):
        delivery_date = delivery_date.isoformat()
    return f"{menu_item_id}-{delivery_date}-{child_id}"


@dataclass
class BatchCartItem:
    menu_item_id: int
    name: str
    price: float
    delivery_date: date
    child_id: int
    child_name: str
    child_class: str
    quantity: int = 1
    image_url: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "menu_item_id": self.menu_item_id,
            "name": self.name,
            "price": self.price,
            "image_url": self.image_url,
            "quantity": self.quantity,
            "delivery_date": self.delivery_date.isoformat(),
            "child_id": self.child_id,
            "child_name": self.child_name,
            "child_class": self.child_class,
            "notes": self.notes,
            "total": self.line_total,
        }


class BatchCart:
    """Pending line items for one parent. Lives in process memory only."""

    def __init__(self):
        self._items: List[BatchCartItem] = []

    @property
    def items(self) -> List[BatchCartItem]:
        return list(self._items)

    def __len__(self):
        return len(self._items)

    def get(self, key: str) -> Optional[BatchCartItem]:
        for item in self._items:
            if item.id == key:
                return item
        return None

    def add(self, item: BatchCartItem) -> BatchCartItem:
        key = make_cart_key(item.menu_item_id, item.delivery_date, item.child_id)
        existing = self.get(key)

        if existing:
            existing.quantity += 1
            return existing

        new_item = replace(item, id=key)
        self._items.append(new_item)
        return new_item

    def update_quantity(self, key: str, quantity: int) -> Optional[BatchCartItem]:
        if quantity < 0:
            raise ValueError("Quantity cannot be negative")

        if quantity == 0:
            self.remove(key)
            return None

        item = self.get(key)
        if item:
            item.quantity = quantity
        return item

    def remove(self, key: str) -> None:
        self._items = [item for item in self._items if item.id != key]

    def clear(self) -> None:
        self._items = []

    def total_amount(self) -> float:
        return sum(item.price * item.quantity for item in self._items)

    def total_items(self) -> int:
        return sum(item.quantity for item in self._items)

    def summary(self) -> dict:
        return {
            "items": [item.to_dict() for item in self._items],
            "total_items": self.total_items(),
            "total_amount": self.total_amount(),
        }


class CartStore:
    """Carts keyed by user id. Nothing here survives a restart."""

    def __init__(self):
        self._carts: Dict[int, BatchCart] = {}

    def get(self, user_id: int) -> BatchCart:
        return self._carts.setdefault(user_id, BatchCart())

    def clear(self, user_id: int) -> None:
        cart = self._carts.get(user_id)
        if cart:
            cart.clear()

    def reset(self) -> None:
        self._carts.clear()


cart_store = CartStore()


def get_cart_store() -> CartStore:
    return cart_store
