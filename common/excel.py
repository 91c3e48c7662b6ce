# common/excel.py
import io

from django.http import HttpResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

THIN = Side(style="thin", color="000000")
THIN_BORDER = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)
HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(start_color="D9D9D9", end_color="D9D9D9", fill_type="solid")
CENTER = Alignment(horizontal="center", vertical="center", wrap_text=True)

MAX_COLUMN_WIDTH = 40


def style_header_row(ws, row_idx: int):
    for cell in ws[row_idx]:
        if cell.value is None:
            continue
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = THIN_BORDER
        cell.alignment = CENTER


def autosize_columns(ws, max_width: int = MAX_COLUMN_WIDTH, min_width: int = 8):
    """Column width = longest cell text + 2, capped."""
    widths = {}
    for row in ws.iter_rows():
        for cell in row:
            if cell.value is None or type(cell).__name__ == "MergedCell":
                continue
            text = str(cell.value)
            if text.startswith("="):
                text = "0000000"
            widths[cell.column] = max(widths.get(cell.column, 0), len(text))
    for col, width in widths.items():
        ws.column_dimensions[get_column_letter(col)].width = max(min_width, min(width + 2, max_width))


def build_table_workbook(title: str, headers: list, rows) -> Workbook:
    """
    Plain report sheet: bold gray header + thin borders on every data cell.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]
    ws.append(headers)
    style_header_row(ws, 1)
    for row in rows:
        ws.append(list(row))
        for cell in ws[ws.max_row]:
            cell.border = THIN_BORDER
    ws.freeze_panes = "A2"
    autosize_columns(ws)
    return wb


def workbook_bytes(wb: Workbook) -> bytes:
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def xlsx_response(wb: Workbook, filename: str) -> HttpResponse:
    resp = HttpResponse(workbook_bytes(wb), content_type=XLSX_CONTENT_TYPE)
    resp["Content-Disposition"] = f'attachment; filename="{filename}"'
    return resp
