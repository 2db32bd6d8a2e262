import io
from datetime import date, datetime
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from app.utils.formatting import format_date, format_long_date, format_price

PAGE_MARGIN = 50
LINE = 15


class _PdfWriter:
    """Top-down text writer over a reportlab canvas with page breaks."""

    def __init__(self, buffer):
        self.c = canvas.Canvas(buffer, pagesize=A4)
        self.width, self.height = A4
        self.y = self.height - PAGE_MARGIN

    def _ensure_space(self, needed=LINE):
        if self.y - needed < PAGE_MARGIN:
            self.c.showPage()
            self.y = self.height - PAGE_MARGIN

    def title(self, text):
        self._ensure_space(30)
        self.c.setFont("Helvetica-Bold", 18)
        self.c.drawString(PAGE_MARGIN, self.y, text)
        self.y -= 25

    def heading(self, text):
        self._ensure_space(30)
        self.y -= 8
        self.c.setFont("Helvetica-Bold", 12)
        self.c.drawString(PAGE_MARGIN, self.y, text)
        self.y -= 18

    def line(self, text, indent=0):
        self._ensure_space()
        self.c.setFont("Helvetica", 10)
        self.c.drawString(PAGE_MARGIN + indent, self.y, text)
        self.y -= LINE

    def row(self, left, right, indent=0):
        self._ensure_space()
        self.c.setFont("Helvetica", 10)
        self.c.drawString(PAGE_MARGIN + indent, self.y, left)
        self.c.drawRightString(self.width - PAGE_MARGIN, self.y, right)
        self.y -= LINE

    def save(self):
        self.c.save()


def _period(start_date: Optional[date], end_date: Optional[date]) -> str:
    if start_date and end_date:
        return f"Periode: {format_long_date(start_date)} - {format_long_date(end_date)}"
    return "Periode: semua pesanan"


def render_cashier_report_pdf(report: dict, start_date: date, end_date: date) -> bytes:
    buffer = io.BytesIO()
    pdf = _PdfWriter(buffer)

    pdf.title("Laporan Kasir")
    pdf.line(_period(start_date, end_date))
    pdf.line(f"Dicetak: {format_long_date(datetime.now())}")

    pdf.heading("Ringkasan")
    pdf.row("Total Pesanan", str(report["total_orders"]))
    pdf.row("Total Pendapatan", format_price(report["total_revenue"]))
    pdf.row("Pembayaran Tunai", format_price(report["total_cash_payments"]))
    pdf.row("Pembayaran Online", format_price(report["total_online_payments"]))
    pdf.row("Rata-rata Pesanan", format_price(report["average_order_value"]))

    pdf.heading("Menu Terlaris")
    for i, item in enumerate(report["top_menu_items"], start=1):
        pdf.row(f"{i}. {item['name']} ({item['quantity']} porsi)", format_price(item["revenue"]))

    pdf.heading("Ringkasan Harian")
    for day in report["daily_summary"]:
        pdf.row(
            f"{format_date(day['date'])} - {day['orders']} pesanan",
            f"{format_price(day['revenue'])} (tunai {format_price(day['cash_payments'])})",
        )

    pdf.save()
    return buffer.getvalue()


def render_order_recap_pdf(
    recap: dict,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> bytes:
    buffer = io.BytesIO()
    pdf = _PdfWriter(buffer)

    pdf.title("Rekap Pesanan")
    pdf.line(_period(start_date, end_date))

    pdf.heading("Total per Menu")
    for item in recap["menu_items"]:
        pdf.row(f"{item['name']} x{item['quantity']}", format_price(item["revenue"]))
    pdf.row("TOTAL", format_price(recap["total_revenue"]))

    for title, groups in (("Per Tanggal Antar", recap["by_date"]), ("Per Kelas", recap["by_class"])):
        pdf.heading(title)
        for group in groups:
            pdf.row(
                f"{group['label']} ({group['order_count']} pesanan)",
                format_price(group["revenue"]),
            )
            for item in group["items"]:
                pdf.line(f"- {item['name']} x{item['quantity']}", indent=15)

    pdf.save()
    return buffer.getvalue()


def export_order_recap_workbook(recap: dict) -> bytes:
    wb = Workbook()
    thin = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin"),
    )

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill("solid", fgColor="4F81BD")
    center = Alignment(horizontal="center")
    currency = '"Rp" #,##0'

    def style_header(ws):
        for cell in ws[1]:
            cell.font = header_font
            cell.fill = header_fill
            cell.border = thin
            cell.alignment = center

    def style_body(ws, money_col):
        for row in ws.iter_rows(min_row=2):
            row[money_col].number_format = currency
            for cell in row:
                cell.border = thin

    # Sheet 1: menu totals
    ws = wb.active
    ws.title = "Menu"
    ws.append(["Menu", "Jumlah", "Pendapatan"])
    style_header(ws)
    for item in recap["menu_items"]:
        ws.append([item["name"], item["quantity"], item["revenue"]])
    style_body(ws, 2)

    # Sheets 2 and 3: same totals per date / class
    for title, groups in (("Per Tanggal", recap["by_date"]), ("Per Kelas", recap["by_class"])):
        sheet = wb.create_sheet(title)
        sheet.append(["Grup", "Menu", "Jumlah", "Pendapatan"])
        style_header(sheet)
        for group in groups:
            for item in group["items"]:
                sheet.append([group["label"], item["name"], item["quantity"], item["revenue"]])
        style_body(sheet, 3)

    for sheet in wb.worksheets:
        for column in sheet.columns:
            width = max(len(str(c.value or "")) for c in column) + 2
            sheet.column_dimensions[column[0].column_letter].width = width

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
