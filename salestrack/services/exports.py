"""Spreadsheet and PDF renderings of a sales list.

Both builders take already-scoped SaleRecord lists and return raw bytes; the
exports router wraps them in a download response.
"""

import logging
import unicodedata
from datetime import date
from io import BytesIO

from fpdf import FPDF
from openpyxl import Workbook
from openpyxl.styles import Font

from salestrack.schemas.sale import SaleRecord
from salestrack.services import stats

logger = logging.getLogger("salestrack")

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"

SALES_COLUMNS = [
    ("Date", 12),
    ("Employee", 18),
    ("Client", 25),
    ("Reservation", 16),
    ("Insurances", 35),
    ("Amount (€)", 14),
    ("Commission (€)", 16),
    ("Status", 12),
]


def _insurance_names(sale: SaleRecord) -> str:
    return ", ".join(line.insurance_name for line in sale.insurances)


def _period_label(start: date | None, end: date | None) -> str:
    if start and end:
        return f"{start} to {end}"
    if start:
        return f"since {start}"
    if end:
        return f"until {end}"
    return "full history"


def export_filename(extension: str, start: date | None, end: date | None, today: date) -> str:
    if start or end:
        return f"sales_{start or 'start'}_to_{end or today}.{extension}"
    return f"sales_{today}.{extension}"


# =========================================================
# EXCEL BUILDER
# =========================================================
def build_sales_workbook(
    sales: list[SaleRecord],
    start: date | None = None,
    end: date | None = None,
) -> bytes:
    workbook = Workbook()

    # =======================
    # SHEET 1 - SALES
    # =======================
    sheet = workbook.active
    sheet.title = "Sales"

    sheet.append([title for title, _ in SALES_COLUMNS])
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    for index, (_, width) in enumerate(SALES_COLUMNS):
        sheet.column_dimensions[chr(ord("A") + index)].width = width

    for sale in sales:
        created = stats.as_utc(sale.created_at)
        sheet.append([
            created.strftime("%d/%m/%Y") if created else "",
            sale.employee_name,
            sale.client_name,
            sale.reservation_number,
            _insurance_names(sale),
            float(stats.money(sale.amount)),
            float(stats.money(sale.commission_amount)),
            sale.status,
        ])

    summary = stats.summarize(sales)

    sheet.append([
        "TOTAL",
        "",
        "",
        "",
        f"{summary.sales_count} sales",
        float(summary.total_amount),
        float(summary.total_commission),
        "",
    ])
    for cell in sheet[sheet.max_row]:
        cell.font = Font(bold=True)

    # =======================
    # SHEET 2 - BY EMPLOYEE
    # =======================
    by_employee = workbook.create_sheet(title="By Employee")

    by_employee.append(["Period", _period_label(start, end)])
    by_employee.append([])
    by_employee.append(["Employee", "Sales", "Amount (€)", "Commission (€)", "Average (€)"])

    for row in stats.employee_breakdown(sales):
        by_employee.append([
            row.employee_name,
            row.sales_count,
            float(row.total_amount),
            float(row.total_commission),
            float(row.average_amount),
        ])

    output = BytesIO()
    workbook.save(output)
    return output.getvalue()


# =========================================================
# PDF BUILDER
# =========================================================
def _latin1(text) -> str:
    """Core PDF fonts only cover Latin-1; strip what they cannot draw."""
    text = str(text or "")
    replacements = {"\u20ac": "EUR", "\u2014": "-", "\u2013": "-", "\u2019": "'", "\u00a0": " "}
    for old, new in replacements.items():
        text = text.replace(old, new)
    try:
        return text.encode("latin-1").decode("latin-1")
    except UnicodeEncodeError:
        nfkd = unicodedata.normalize("NFKD", text)
        stripped = "".join(c for c in nfkd if not unicodedata.combining(c))
        return stripped.encode("latin-1", errors="replace").decode("latin-1")


class SalesReportPDF(FPDF):
    def __init__(self, period_label: str):
        super().__init__(orientation="L", unit="mm", format="A4")
        self.period_label = period_label

    def header(self):
        self.set_font("Helvetica", "B", 14)
        self.cell(0, 8, "Insurance sales report", align="C", new_x="LMARGIN", new_y="NEXT")
        self.set_font("Helvetica", "", 9)
        self.cell(0, 5, _latin1(f"Period: {self.period_label}"), align="C", new_x="LMARGIN", new_y="NEXT")
        self.ln(3)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "", 7)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")


def build_sales_pdf(
    sales: list[SaleRecord],
    start: date | None = None,
    end: date | None = None,
) -> bytes:
    pdf = SalesReportPDF(_period_label(start, end))
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    summary = stats.summarize(sales)

    # Summary block
    pdf.set_font("Helvetica", "B", 10)
    pdf.cell(0, 6, "Summary", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 9)
    for label, value in [
        ("Sales", str(summary.sales_count)),
        ("Total amount", f"{summary.total_amount} EUR"),
        ("Total commission", f"{summary.total_commission} EUR"),
        ("Average amount", f"{summary.average_amount} EUR"),
    ]:
        pdf.cell(50, 5, label)
        pdf.cell(0, 5, value, new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # Sales table
    widths = [22, 30, 45, 30, 75, 25, 28, 20]
    pdf.set_font("Helvetica", "B", 8)
    for (title, _), width in zip(SALES_COLUMNS, widths):
        pdf.cell(width, 6, _latin1(title), border=1, align="C")
    pdf.ln()

    pdf.set_font("Helvetica", "", 8)
    for sale in sales:
        created = stats.as_utc(sale.created_at)
        values = [
            created.strftime("%d/%m/%Y") if created else "",
            sale.employee_name,
            sale.client_name,
            sale.reservation_number,
            _insurance_names(sale),
            f"{stats.money(sale.amount)}",
            f"{stats.money(sale.commission_amount)}",
            sale.status,
        ]
        for value, width in zip(values, widths):
            text = _latin1(value)
            # Truncate to the column rather than wrapping rows
            while text and pdf.get_string_width(text) > width - 2:
                text = text[:-1]
            pdf.cell(width, 5, text, border=1)
        pdf.ln()

    logger.debug(f"PDF export built with {len(sales)} sales")
    return bytes(pdf.output())
