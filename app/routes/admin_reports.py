from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from app.database import get_session
from app.dependencies.roles import require_admin
from app.models.user import User
from app.services.report_export import (
    export_order_recap_workbook,
    render_order_recap_pdf,
)
from app.services.report_service import build_order_recap, fetch_recap_orders

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/order-recap")
def order_recap(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    return build_order_recap(fetch_recap_orders(session, start_date, end_date))


@router.get("/order-recap/print")
def print_order_recap(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    recap = build_order_recap(fetch_recap_orders(session, start_date, end_date))
    return Response(
        content=render_order_recap_pdf(recap, start_date, end_date),
        media_type="application/pdf",
        headers={"Content-Disposition": 'inline; filename="rekap_pesanan.pdf"'},
    )


@router.get("/order-recap/export")
def export_order_recap(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    recap = build_order_recap(fetch_recap_orders(session, start_date, end_date))
    return Response(
        content=export_order_recap_workbook(recap),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="rekap_pesanan.xlsx"'},
    )
