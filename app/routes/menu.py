from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from app.database import get_session
from app.models.menu_item import MenuItem
from app.utils.formatting import format_price

router = APIRouter()


@router.get("/")
def list_menu(session: Session = Depends(get_session)):
    items = session.exec(
        select(MenuItem).where(MenuItem.is_available == True).order_by(MenuItem.name)  # noqa: E712
    ).all()

    return [
        {
            "id": m.id,
            "name": m.name,
            "price": m.price,
            "price_display": format_price(m.price),
            "image_url": m.image_url,
        }
        for m in items
    ]
