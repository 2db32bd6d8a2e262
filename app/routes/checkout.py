from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session
from app.database import get_session
from app.models.user import User
from app.schemas.checkout_schemas import BatchOrderRequest
from app.services.cart_service import CartStore, get_cart_store
from app.services.order_service import submit_batch_order
from app.services.payment_function import get_function_session
from app.services.payment_gateway import PaymentGateway, get_payment_gateway
from app.utils.token import get_current_user

router = APIRouter()


@router.get("/summary")
def checkout_summary(
    current_user: User = Depends(get_current_user),
    store: CartStore = Depends(get_cart_store),
):
    return store.get(current_user.id).summary()


@router.post("/batch-order")
def create_batch_order(
    data: Optional[BatchOrderRequest] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    store: CartStore = Depends(get_cart_store),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    function_session: Optional[Session] = Depends(get_function_session),
):
    # cart is kept until the pop-up reports success or pending
    return submit_batch_order(
        session,
        current_user,
        store.get(current_user.id),
        gateway,
        function_session,
        parent_notes=data.parent_notes if data else None,
    )
