from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from app.database import get_session
from app.models.child import Child
from app.models.user import User
from app.utils.token import get_current_user

router = APIRouter()


@router.get("/")
def list_children(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    children = session.exec(
        select(Child).where(Child.user_id == current_user.id).order_by(Child.name)
    ).all()

    return [
        {"id": c.id, "name": c.name, "class_name": c.class_name}
        for c in children
    ]
