from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from app.database import get_session
from app.models.child import Child
from app.models.menu_item import MenuItem
from app.models.user import User
from app.schemas.cart_schemas import CartAddRequest, CartUpdateRequest
from app.services.cart_service import BatchCartItem, CartStore, get_cart_store
from app.utils.token import get_current_user

router = APIRouter()

# Add to Cart

@router.post("/add")
def add_to_cart(
    data: CartAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    store: CartStore = Depends(get_cart_store),
):
    if data.quantity < 1:
        raise HTTPException(400, "Jumlah minimal 1")

    menu_item = session.get(MenuItem, data.menu_item_id)
    if not menu_item:
        raise HTTPException(404, "Menu tidak ditemukan")
    if not menu_item.is_available:
        raise HTTPException(400, "Menu sedang tidak tersedia")

    child = session.get(Child, data.child_id)
    if not child or child.user_id != current_user.id:
        raise HTTPException(404, "Data anak tidak ditemukan")

    cart = store.get(current_user.id)
    item = cart.add(BatchCartItem(
        menu_item_id=menu_item.id,
        name=menu_item.name,
        price=menu_item.price,
        image_url=menu_item.image_url,
        quantity=data.quantity,
        delivery_date=data.delivery_date,
        child_id=child.id,
        child_name=child.name,
        child_class=child.class_name,
        notes=data.notes,
    ))

    return {"message": "Ditambahkan ke keranjang", "item": item.to_dict(), "cart": cart.summary()}

# View Cart

@router.get("/")
def get_cart(
    current_user: User = Depends(get_current_user),
    store: CartStore = Depends(get_cart_store),
):
    return store.get(current_user.id).summary()

# Update Cart

@router.put("/update/{item_id}")
def update_cart_item(
    item_id: str,
    data: CartUpdateRequest,
    current_user: User = Depends(get_current_user),
    store: CartStore = Depends(get_cart_store),
):
    cart = store.get(current_user.id)

    if not cart.get(item_id):
        raise HTTPException(404, "Item keranjang tidak ditemukan")

    try:
        item = cart.update_quantity(item_id, data.quantity)
    except ValueError as exc:
        raise HTTPException(400, str(exc))

    if item is None:
        return {"message": "Item dihapus", "cart": cart.summary()}

    return {"message": "Jumlah diperbarui", "item": item.to_dict(), "cart": cart.summary()}

# Remove Cart

@router.delete("/remove/{item_id}")
def remove_item(
    item_id: str,
    current_user: User = Depends(get_current_user),
    store: CartStore = Depends(get_cart_store),
):
    cart = store.get(current_user.id)

    if not cart.get(item_id):
        raise HTTPException(404, "Item keranjang tidak ditemukan")

    cart.remove(item_id)
    return {"message": "Item dihapus dari keranjang", "cart": cart.summary()}

# Clear Cart

@router.delete("/clear")
def clear_cart_endpoint(
    current_user: User = Depends(get_current_user),
    store: CartStore = Depends(get_cart_store),
):
    store.clear(current_user.id)
    return {"message": "Keranjang dikosongkan"}
