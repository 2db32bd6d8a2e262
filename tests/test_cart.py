from datetime import date

import pytest

from app.services.cart_service import BatchCart, BatchCartItem, make_cart_key

MONDAY = date(2025, 10, 6)
TUESDAY = date(2025, 10, 7)


def _item(menu_item_id=1, name="Nasi Ayam", price=10000, delivery=MONDAY, child_id=1, child_name="Andi", **kwargs):
    return BatchCartItem(
        menu_item_id=menu_item_id,
        name=name,
        price=price,
        delivery_date=delivery,
        child_id=child_id,
        child_name=child_name,
        child_class="1A",
        **kwargs,
    )


def test_cart_key_is_menu_date_child():
    assert make_cart_key(5, MONDAY, 9) == "5-2025-10-06-9"
    assert make_cart_key(5, "2025-10-06", 9) == "5-2025-10-06-9"


def test_add_same_key_increments_quantity():
    cart = BatchCart()
    cart.add(_item())
    cart.add(_item())

    assert len(cart) == 1
    assert cart.items[0].quantity == 2


def test_same_menu_for_two_children_stays_separate():
    cart = BatchCart()
    cart.add(_item(child_id=1, child_name="Andi"))
    cart.add(_item(child_id=2, child_name="Bunga"))

    assert len(cart) == 2
    assert {i.child_name for i in cart.items} == {"Andi", "Bunga"}


def test_same_menu_on_two_dates_stays_separate():
    cart = BatchCart()
    cart.add(_item(delivery=MONDAY))
    cart.add(_item(delivery=TUESDAY))

    assert len(cart) == 2


def test_totals_for_mixed_cart():
    cart = BatchCart()
    first = cart.add(_item())
    cart.update_quantity(first.id, 2)
    cart.add(_item(menu_item_id=2, name="Mie Goreng", price=15000, delivery=TUESDAY))

    assert cart.total_amount() == 35000
    assert cart.total_items() == 3


def test_totals_do_not_depend_on_insertion_order():
    a, b = BatchCart(), BatchCart()
    first = _item()
    second = _item(menu_item_id=2, price=15000, delivery=TUESDAY, child_id=2)

    a.add(first)
    a.add(second)
    b.add(second)
    b.add(first)

    assert a.total_amount() == b.total_amount()
    assert a.total_items() == b.total_items()


def test_update_to_zero_is_remove():
    updated, removed = BatchCart(), BatchCart()
    for cart in (updated, removed):
        cart.add(_item())
        cart.add(_item(child_id=2))

    key = make_cart_key(1, MONDAY, 1)
    assert updated.update_quantity(key, 0) is None
    removed.remove(key)

    assert [i.id for i in updated.items] == [i.id for i in removed.items]
    assert updated.get(key) is None


def test_negative_quantity_rejected():
    cart = BatchCart()
    item = cart.add(_item())

    with pytest.raises(ValueError):
        cart.update_quantity(item.id, -1)

    assert cart.get(item.id).quantity == 1


def test_update_unknown_key_is_noop():
    cart = BatchCart()
    cart.add(_item())

    assert cart.update_quantity("missing", 3) is None
    assert cart.total_items() == 1


def test_clear_empties_cart():
    cart = BatchCart()
    cart.add(_item())
    cart.clear()

    assert len(cart) == 0
    assert cart.total_amount() == 0


def test_summary_lists_line_totals():
    cart = BatchCart()
    item = cart.add(_item(notes="tanpa sambal"))
    cart.update_quantity(item.id, 3)

    summary = cart.summary()
    assert summary["total_items"] == 3
    assert summary["total_amount"] == 30000
    assert summary["items"][0]["total"] == 30000
    assert summary["items"][0]["delivery_date"] == "2025-10-06"
    assert summary["items"][0]["notes"] == "tanpa sambal"


# HTTP surface

def _add(client, headers, menu_item, child, delivery="2025-10-06", quantity=1):
    return client.post(
        "/cart/add",
        json={
            "menu_item_id": menu_item.id,
            "child_id": child.id,
            "delivery_date": delivery,
            "quantity": quantity,
        },
        headers=headers,
    )


def test_add_and_view_cart(client, parent_headers, menu, children):
    res = _add(client, parent_headers, menu[0], children[0])
    assert res.status_code == 200
    assert res.json()["item"]["child_name"] == "Andi"
    assert res.json()["item"]["child_class"] == "1A"

    _add(client, parent_headers, menu[0], children[0])
    _add(client, parent_headers, menu[0], children[1])

    cart = client.get("/cart/", headers=parent_headers).json()
    assert len(cart["items"]) == 2
    assert cart["total_items"] == 3
    assert cart["total_amount"] == 30000


def test_add_unavailable_menu_rejected(client, parent_headers, menu, children):
    res = _add(client, parent_headers, menu[2], children[0])
    assert res.status_code == 400


def test_add_for_someone_elses_child_rejected(client, other_parent, headers_for, menu, children):
    res = _add(client, headers_for(other_parent), menu[0], children[0])
    assert res.status_code == 404


def test_update_and_remove_through_api(client, parent_headers, menu, children):
    item_id = _add(client, parent_headers, menu[1], children[0]).json()["item"]["id"]

    res = client.put(f"/cart/update/{item_id}", json={"quantity": 4}, headers=parent_headers)
    assert res.status_code == 200
    assert res.json()["cart"]["total_amount"] == 60000

    res = client.put(f"/cart/update/{item_id}", json={"quantity": -2}, headers=parent_headers)
    assert res.status_code in (400, 422)

    res = client.put(f"/cart/update/{item_id}", json={"quantity": 0}, headers=parent_headers)
    assert res.status_code == 200
    assert res.json()["cart"]["items"] == []

    res = client.delete(f"/cart/remove/{item_id}", headers=parent_headers)
    assert res.status_code == 404


def test_cart_requires_login(client):
    assert client.get("/cart/").status_code == 401
