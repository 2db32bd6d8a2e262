import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session, text

from app.config import settings
from app.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    db_status = "ok"

    try:
        session.exec(text("SELECT 1"))
    except Exception:
        logger.exception("Database ping failed")
        db_status = "failed"

    gateway_status = (
        "configured"
        if settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET
        else "missing"
    )

    return {
        "status": "ok",
        "database": db_status,
        "payment_gateway": gateway_status,
        "timestamp": datetime.utcnow().isoformat(),
    }
