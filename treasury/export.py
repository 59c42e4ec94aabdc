"""Spreadsheet and PDF writers for the transaction report."""

import logging
import re
from datetime import datetime
from io import BytesIO

import pandas as pd
from fpdf import FPDF
from fpdf.fonts import FontFace
from openpyxl.utils import get_column_letter

from treasury.domain import ReportView
from treasury.reports import TABLE_HEADER, format_currency, transaction_row

logger = logging.getLogger(__name__)

SHEET_NAME = "Detailed Transactions"
COLUMN_WIDTHS = (15, 10, 15, 40, 20, 20, 40)
PDF_COLUMN_WIDTHS = (24, 20, 30, 70, 40, 40, 53)
HEADER_FILL = (41, 128, 185)

_UNSAFE_CHARS = re.compile(r'[/\\:*?"<>|]')


class ExportError(Exception):
    """Raised when a report artifact cannot be produced."""


def export_filename(period: str, extension: str) -> str:
    return f"Detailed_Transactions_{_UNSAFE_CHARS.sub('_', period)}.{extension}"


def to_excel(rows: list[list]) -> bytes:
    try:
        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name=SHEET_NAME, index=False, header=False)
            sheet = writer.sheets[SHEET_NAME]
            for idx, width in enumerate(COLUMN_WIDTHS, start=1):
                sheet.column_dimensions[get_column_letter(idx)].width = width
        return buffer.getvalue()
    except Exception as exc:
        logger.exception("Excel export failed")
        raise ExportError(f"Excel export failed: {exc}") from exc


def _latin1(text: str) -> str:
    # the built-in PDF fonts only cover latin-1
    return text.encode("latin-1", "replace").decode("latin-1")


def to_pdf(view: ReportView, period: str, exported_at: datetime) -> bytes:
    try:
        pdf = FPDF(orientation="L")
        pdf.set_auto_page_break(auto=True, margin=15)
        pdf.add_page()

        pdf.set_font("Helvetica", size=18)
        pdf.cell(0, 10, "Detailed Transaction Report", new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", size=12)
        pdf.cell(0, 8, _latin1(f"Period: {period}"), new_x="LMARGIN", new_y="NEXT")
        pdf.cell(0, 8, f"Exported at: {exported_at.strftime('%d/%m/%Y %H:%M')}", new_x="LMARGIN", new_y="NEXT")
        pdf.ln(4)

        pdf.set_font("Helvetica", size=14)
        pdf.cell(0, 8, "Financial Summary", new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", size=12)
        for label, value in (
            ("Total inflows", view.totals.inflow),
            ("Total outflows", view.totals.outflow),
            ("Balance", view.totals.balance),
        ):
            pdf.cell(0, 7, f"{label}: {format_currency(value)}", new_x="LMARGIN", new_y="NEXT")
        pdf.ln(4)

        pdf.set_font("Helvetica", size=14)
        pdf.cell(0, 8, "Detailed Transactions", new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", size=9)
        headings = FontFace(emphasis="BOLD", color=(255, 255, 255), fill_color=HEADER_FILL)
        with pdf.table(
            col_widths=PDF_COLUMN_WIDTHS,
            headings_style=headings,
            cell_fill_color=(235, 241, 250),
            cell_fill_mode="ROWS",
        ) as table:
            header = table.row()
            for title in TABLE_HEADER:
                header.cell(title)
            for t in view.transactions:
                row = table.row()
                values = transaction_row(t)
                values[2] = format_currency(t.amount)
                for value in values:
                    row.cell(_latin1(value))
        return bytes(pdf.output())
    except Exception as exc:
        logger.exception("PDF export failed")
        raise ExportError(f"PDF export failed: {exc}") from exc
