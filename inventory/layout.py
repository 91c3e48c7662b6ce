# inventory/layout.py
"""
Availability chart geometry.

Widths are in PDF points on an A4 page. Every row of a wing (header and
floors) shares one "width per span slot", taken from the header floor:

    slot = available_width / sum(header floor spans)

so a unit of span 2 is exactly twice as wide as a unit of span 1 and the
columns line up floor to floor. Without a usable header floor the wing falls
back to unitsPerFloor equal slots.
"""
from dataclasses import dataclass, field

A4_WIDTH = 595
A4_HEIGHT = 842
PAGE_PADDING = 20
FLOOR_CELL_WIDTH = 40

LANDSCAPE_THRESHOLD = 10
FLOORS_PER_PAGE_PORTRAIT = 16
FLOORS_PER_PAGE_LANDSCAPE = 11

NEUTRAL_COLOR = "#ffffff"
OTHERS_STATUS = "others"


def clamp_unit_span(requested, units_per_floor, other_spans):
    """
    Span a unit may take on a floor that already holds `other_spans` slots.

    >>> clamp_unit_span(4, 10, 8)
    2
    """
    remaining = units_per_floor - other_spans
    return max(1, min(int(requested), remaining))


def is_landscape(units_per_floor) -> bool:
    return (units_per_floor or 0) > LANDSCAPE_THRESHOLD


def floors_per_page(landscape: bool) -> int:
    return FLOORS_PER_PAGE_LANDSCAPE if landscape else FLOORS_PER_PAGE_PORTRAIT


def available_unit_width(landscape: bool) -> float:
    page_width = A4_HEIGHT if landscape else A4_WIDTH
    return page_width - PAGE_PADDING * 2 - FLOOR_CELL_WIDTH


def span_slot_width(available_width, units_per_floor, header_spans=None) -> float:
    """Width of one span slot for a wing."""
    if header_spans:
        return available_width / max(sum(header_spans), 1)
    return available_width / max(units_per_floor or 0, 1)


def floor_label(display_number) -> str:
    if display_number == 0:
        return "Ground"
    n = abs(int(display_number))
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{display_number}{suffix}"


def paginate(items, per_page):
    items = list(items)
    return [items[i:i + per_page] for i in range(0, len(items), per_page)]


def status_palette(categories):
    """
    Categories (already in precedence order) → legend entries.
    Accepts model instances or dicts with name/display_name/color_hex.
    """
    palette = []
    for cat in categories:
        get = cat.get if isinstance(cat, dict) else (lambda k, c=cat: getattr(c, k))
        palette.append(
            {
                "name": get("name"),
                "display_name": get("display_name") or get("name"),
                "color": get("color_hex") or NEUTRAL_COLOR,
            }
        )
    return palette


@dataclass
class UnitCell:
    unit_number: str
    width: float
    color: str
    lines: list = field(default_factory=list)


@dataclass
class FloorRow:
    label: str
    cells: list


@dataclass
class ChartPage:
    title: str
    landscape: bool
    header: list
    rows: list
    commercial_rows: list = field(default_factory=list)
    show_project_header: bool = False
    continued: bool = False
    page_number: int = 1
    total_pages: int = 1


def _fmt_area(area):
    if area in (None, ""):
        return ""
    try:
        value = float(area)
    except (TypeError, ValueError):
        return str(area)
    return f"{value:g} sqft"


def build_floor_row(floor, width_for, colors, include_details=True):
    """
    `floor` is a dict: display_number, show_area, units (dicts with unit_number,
    area, configuration, unit_span, status, reserved_by_or_reason).
    `width_for(unit, index)` gives the cell width.
    """
    cells = []
    for idx, unit in enumerate(floor["units"]):
        lines = []
        if include_details and floor.get("show_area") and unit.get("status") != OTHERS_STATUS:
            if unit.get("area"):
                lines.append(_fmt_area(unit["area"]))
            if unit.get("configuration"):
                lines.append(str(unit["configuration"]).upper())
        if unit.get("reserved_by_or_reason"):
            lines.append(str(unit["reserved_by_or_reason"]).title())
        cells.append(
            UnitCell(
                unit_number=unit["unit_number"],
                width=round(width_for(unit, idx), 2),
                color=colors.get(unit.get("status"), NEUTRAL_COLOR),
                lines=lines,
            )
        )
    return FloorRow(label=floor_label(floor["display_number"]), cells=cells)


def wing_header(wing, slot_width):
    """Header cells: header floor ki units, warna 'Unit 1..N'."""
    header_floor = wing.get("header_floor")
    if header_floor is not None:
        return [
            {
                "title": str(u.get("configuration") or "").upper(),
                "subtitle": _fmt_area(u.get("area")),
                "width": round(slot_width * u["unit_span"], 2),
            }
            for u in header_floor["units"]
        ]
    return [
        {"title": f"Unit {i + 1}", "subtitle": "", "width": round(slot_width, 2)}
        for i in range(wing["units_per_floor"])
    ]


def header_floor_of(wing):
    """headerFloorIndex residential floors ki entry order me index hai."""
    floors = wing["floors"]
    idx = wing.get("header_floor_index")
    if idx is None or idx < 0 or idx >= len(floors):
        return None
    return floors[idx]


def build_wing_pages(wing, colors, commercial_floors=None):
    """
    One wing → list of ChartPage. Residential floors ascending by displayNumber,
    split 16/11 per page; wing-level commercial floors sit on the first page.
    """
    landscape = is_landscape(wing["units_per_floor"])
    available = available_unit_width(landscape)

    wing = dict(wing)
    wing["header_floor"] = header_floor_of(wing)
    header_spans = [u["unit_span"] for u in wing["header_floor"]["units"]] if wing["header_floor"] else None
    slot = span_slot_width(available, wing["units_per_floor"], header_spans)

    def width_for(unit, _idx):
        return slot * unit["unit_span"]

    header = wing_header(wing, slot)
    floors = sorted(wing["floors"], key=lambda f: f["display_number"])
    chunks = paginate(floors, floors_per_page(landscape)) or [[]]

    commercial_rows = [
        build_floor_row(f, width_for, colors)
        for f in sorted(commercial_floors or [], key=lambda f: f["display_number"])
    ]

    pages = []
    for page_idx, chunk in enumerate(chunks):
        pages.append(
            ChartPage(
                title=f"Wing {wing['name']}",
                landscape=landscape,
                header=header,
                rows=[build_floor_row(f, width_for, colors) for f in chunk],
                commercial_rows=commercial_rows if page_idx == 0 else [],
                show_project_header=page_idx == 0,
                continued=page_idx > 0,
                page_number=page_idx + 1,
                total_pages=len(chunks),
            )
        )
    return pages


def build_project_commercial_page(commercial_floors, colors):
    """Project-level commercial floors: har floor ki units barabar width me."""
    floors = sorted(commercial_floors, key=lambda f: f["display_number"])
    landscape = is_landscape(max((len(f["units"]) for f in floors), default=0))
    available = available_unit_width(landscape)

    rows = []
    for floor in floors:
        count = max(len(floor["units"]), 1)
        rows.append(build_floor_row(floor, lambda _u, _i, c=count: available / c, colors))

    return ChartPage(
        title="Project Commercial Units",
        landscape=landscape,
        header=[],
        rows=rows,
        show_project_header=True,
    )


def build_availability_chart(structure, categories):
    """
    `structure` is the plain-dict project tree from inventory.services.project_tree().
    Returns {"legend": [...], "pages": [ChartPage, ...]}.
    """
    legend = status_palette(categories)
    colors = {entry["name"]: entry["color"] for entry in legend}

    pages = []
    wing_level = structure["commercial_unit_placement"] == "wingLevel"
    if not wing_level and structure.get("commercial_floors"):
        pages.append(build_project_commercial_page(structure["commercial_floors"], colors))

    for wing in structure["wings"]:
        pages.extend(
            build_wing_pages(
                wing,
                colors,
                commercial_floors=wing.get("commercial_floors") if wing_level else None,
            )
        )
    return {"legend": legend, "pages": pages}
