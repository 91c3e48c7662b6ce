# inventory/reports.py
import re

from django.utils import timezone
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from common.excel import CENTER, THIN_BORDER, autosize_columns
from common.pdf_utils import render_html_to_pdf_bytes
from .layout import OTHERS_STATUS, build_availability_chart, status_palette
from .services import ordered_categories, project_tree, wing_status_summary

TITLE_FONT = Font(bold=True, size=16)
BOLD = Font(bold=True)
FILL_HEADER = PatternFill(start_color="EEEEEE", end_color="EEEEEE", fill_type="solid")
FILL_STATUS = PatternFill(start_color="F7F7F7", end_color="F7F7F7", fill_type="solid")

BHK_RE = re.compile(r"^(\d+)\s*BHK$", re.IGNORECASE)


def config_sort_key(config: str):
    """1BHK, 2BHK ... numerically pehle, baaki alphabetically."""
    m = BHK_RE.match(config.strip())
    if m:
        return (0, int(m.group(1)), "")
    return (1, 0, config.lower())


def _norm(s):
    return (s or "").strip().lower()


def availability_chart_pdf(project) -> bytes:
    chart = build_availability_chart(project_tree(project), ordered_categories())
    context = {
        "project": project,
        "legend": chart["legend"],
        "pages": chart["pages"],
        "generated_on": timezone.localdate(),
    }
    return render_html_to_pdf_bytes("inventory/availability_chart.html", context)


def inventory_summary_pdf(project) -> bytes:
    categories = ordered_categories()
    legend = status_palette(categories)
    wings = wing_status_summary(project)

    order = [c["name"] for c in legend]
    seen = {s for w in wings for side in ("residential", "commercial") for s in w[side]}
    statuses = order + sorted(seen - set(order))

    rows = []
    for wing in wings:
        for side in ("residential", "commercial"):
            counts = wing[side]
            if not counts:
                continue
            rows.append(
                {
                    "wing": wing["name"],
                    "side": side.title(),
                    "counts": [counts.get(s, 0) for s in statuses],
                    "total": sum(counts.values()),
                }
            )

    colors = {c["name"]: c for c in legend}
    columns = [
        {"name": s, "label": colors[s]["display_name"] if s in colors else s.title(),
         "color": colors[s]["color"] if s in colors else "#ffffff"}
        for s in statuses
    ]
    context = {
        "project": project,
        "columns": columns,
        "rows": rows,
        "grand_total": sum(r["total"] for r in rows),
        "generated_on": timezone.localdate(),
    }
    return render_html_to_pdf_bytes("inventory/inventory_summary.html", context)


def build_status_summary_workbook(structure, categories):
    """
    Residential units only (status 'others' skip), status → configuration rows,
    one column per wing, SUM formulas for totals.

    Returns (workbook, totals) where totals = {status: count} for callers/tests,
    since openpyxl formulas carry no cached values.
    """
    wing_names = [w["name"] for w in structure["wings"]]

    order = {}
    for idx, cat in enumerate(categories):
        get = cat.get if isinstance(cat, dict) else (lambda k, c=cat: getattr(c, k))
        for key in (get("display_name"), get("name")):
            if _norm(key) and _norm(key) not in order:
                order[_norm(key)] = idx

    flat = []
    for wing in structure["wings"]:
        for floor in wing["floors"]:
            if floor["type"] != "residential":
                continue
            for unit in floor["units"]:
                status = unit.get("status") or ""
                if not _norm(status) or _norm(status) == OTHERS_STATUS:
                    continue
                config = (unit.get("configuration") or "").strip() or "Unspecified"
                flat.append((wing["name"], status, config))

    statuses = sorted(
        {s for _, s, _ in flat},
        key=lambda s: (order.get(_norm(s), float("inf")), s.lower()),
    )
    status_counts = {s: {w: 0 for w in wing_names} for s in statuses}
    config_counts = {s: {} for s in statuses}
    for wing, status, config in flat:
        status_counts[status][wing] += 1
        per_wing = config_counts[status].setdefault(config, {w: 0 for w in wing_names})
        per_wing[wing] += 1

    wb = Workbook()
    wb.calculation.fullCalcOnLoad = True
    ws = wb.active
    ws.title = "Residential Status Summary"

    last_col = len(wing_names) + 2
    first_wing_col = get_column_letter(2)
    last_wing_col = get_column_letter(max(len(wing_names) + 1, 2))

    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=last_col)
    ws.cell(row=1, column=1, value=structure.get("name") or "Project Summary").font = TITLE_FONT
    ws.cell(row=1, column=1).alignment = CENTER

    ws.merge_cells(start_row=2, start_column=1, end_row=2, end_column=last_col)
    generated = ws.cell(row=2, column=1, value=f"Generated on {timezone.localdate():%B %d, %Y}")
    generated.font = BOLD
    generated.alignment = CENTER

    header_row = 4
    for col, title in enumerate(["Category / Config", *wing_names, "Total Units"], start=1):
        cell = ws.cell(row=header_row, column=col, value=title)
        cell.font = BOLD
        cell.fill = FILL_HEADER
        cell.alignment = CENTER

    def row_total_formula(r):
        if not wing_names:
            return 0
        return f"=SUM({first_wing_col}{r}:{last_wing_col}{r})"

    row = header_row + 1
    status_rows = []
    totals = {}
    for status in statuses:
        ws.cell(row=row, column=1, value=status.upper())
        for i, wing in enumerate(wing_names):
            ws.cell(row=row, column=2 + i, value=status_counts[status][wing])
        ws.cell(row=row, column=last_col, value=row_total_formula(row))
        for col in range(1, last_col + 1):
            cell = ws.cell(row=row, column=col)
            cell.font = BOLD
            cell.fill = FILL_STATUS
            cell.alignment = CENTER
        status_rows.append(row)
        totals[status] = sum(status_counts[status].values())
        row += 1

        for config in sorted(config_counts[status], key=config_sort_key):
            ws.cell(row=row, column=1, value=config).alignment = CENTER
            for i, wing in enumerate(wing_names):
                ws.cell(row=row, column=2 + i, value=config_counts[status][config][wing]).alignment = CENTER
            ws.cell(row=row, column=last_col, value=row_total_formula(row)).alignment = CENTER
            row += 1

        # spacer
        row += 1

    total_row = row
    ws.cell(row=total_row, column=1, value="Total")
    for col in range(2, last_col + 1):
        letter = get_column_letter(col)
        refs = ",".join(f"{letter}{r}" for r in status_rows)
        ws.cell(row=total_row, column=col, value=f"=SUM({refs})" if refs else 0)
    for col in range(1, last_col + 1):
        cell = ws.cell(row=total_row, column=col)
        cell.font = BOLD
        cell.fill = FILL_HEADER
        cell.alignment = CENTER

    for r in range(header_row, total_row + 1):
        for c in range(1, last_col + 1):
            ws.cell(row=r, column=c).border = THIN_BORDER

    ws.freeze_panes = ws.cell(row=header_row + 1, column=2)
    autosize_columns(ws)
    return wb, totals
