# inventory/services.py
import logging

from django.db.models import Max, Sum
from rest_framework.exceptions import ValidationError

from setup.models import Category
from .layout import clamp_unit_span
from .models import Floor, FloorType, STATUS_AVAILABLE, STATUS_OTHERS, Unit

log = logging.getLogger(__name__)


def normalize_status(raw) -> str:
    return str(raw).strip().lower() if raw is not None else ""


def resolve_status(raw) -> str:
    """
    Status string → existing Category name.
    Unknown status par 400, taaki chart me bina colour ka status na aaye.
    """
    if raw is None or not isinstance(raw, str) or not raw.strip():
        raise ValidationError({"status": "Status is required"})
    name = normalize_status(raw)
    if not Category.objects.filter(name=name).exists():
        raise ValidationError(
            {"status": f"Invalid status '{raw}'. Create a Category first or use an existing one."}
        )
    return name


def ordered_categories():
    return list(Category.objects.order_by("precedence", "-created_at"))


def used_span(floor, exclude_unit_id=None) -> int:
    qs = floor.units.all()
    if exclude_unit_id is not None:
        qs = qs.exclude(pk=exclude_unit_id)
    return qs.aggregate(total=Sum("unit_span"))["total"] or 0


def fit_unit_span(floor, requested, exclude_unit_id=None) -> int:
    """
    Floor ki bachi hui capacity ke hisaab se span clamp karo.
    Project-level commercial floors (no wing) par koi cap nahi.
    """
    capacity = floor.capacity
    if capacity is None:
        return max(1, int(requested))
    others = used_span(floor, exclude_unit_id=exclude_unit_id)
    if capacity - others < 1:
        raise ValidationError(
            {"unitSpan": f"Floor is full: {others} of {capacity} slots already used"}
        )
    span = clamp_unit_span(requested, capacity, others)
    if span != int(requested):
        log.info("Unit span clamped from %s to %s on floor %s", requested, span, floor.pk)
    return span


def next_unit_position(floor) -> int:
    current = floor.units.aggregate(m=Max("position"))["m"]
    return 0 if current is None else current + 1


# ---------- Plain dict tree (chart / excel / structure endpoint) ----------

def _unit_dict(unit):
    return {
        "id": unit.id,
        "unit_number": unit.unit_number,
        "area": unit.area,
        "configuration": unit.configuration,
        "unit_span": unit.unit_span,
        "status": unit.status,
        "reserved_by_or_reason": unit.reserved_by_or_reason,
        "reference_id": unit.reference_id,
    }


def _floor_dict(floor):
    return {
        "id": floor.id,
        "type": floor.type,
        "display_number": floor.display_number,
        "show_area": floor.show_area,
        "units": [_unit_dict(u) for u in floor.units.all()],
    }


def project_tree(project):
    """
    Project → {wings:[{floors, commercial_floors}], commercial_floors}.
    Floors stay in entry order (headerFloorIndex usi order me hai).
    """
    floors = list(
        Floor.objects.filter(project=project)
        .prefetch_related("units")
        .order_by("position", "id")
    )
    by_wing = {}
    project_commercial = []
    for floor in floors:
        if floor.wing_id is None:
            project_commercial.append(_floor_dict(floor))
            continue
        bucket = by_wing.setdefault(floor.wing_id, {"floors": [], "commercial_floors": []})
        key = "commercial_floors" if floor.is_commercial_block else "floors"
        bucket[key].append(_floor_dict(floor))

    wings = []
    for wing in project.wings.all().order_by("position", "id"):
        bucket = by_wing.get(wing.id, {"floors": [], "commercial_floors": []})
        wings.append(
            {
                "id": wing.id,
                "name": wing.name,
                "units_per_floor": wing.units_per_floor,
                "header_floor_index": wing.header_floor_index,
                "floors": bucket["floors"],
                "commercial_floors": bucket["commercial_floors"],
            }
        )

    return {
        "id": project.id,
        "name": project.name,
        "developer": project.developer,
        "location": project.location,
        "commercial_unit_placement": project.commercial_unit_placement,
        "wings": wings,
        "commercial_floors": project_commercial,
    }


def project_counts(project):
    """Totals for the list view; status 'others' wali units gini nahi jati."""
    counts = {
        "totalWings": project.wings.count(),
        "totalUnits": 0,
        "totalAvailableUnits": 0,
        "totalCommercialUnits": 0,
        "totalAvailableCommercialUnits": 0,
    }
    units = (
        Unit.objects.filter(floor__project=project)
        .exclude(status=STATUS_OTHERS)
        .values_list("floor__type", "status")
    )
    for floor_type, status in units:
        available = status == STATUS_AVAILABLE
        if floor_type == FloorType.COMMERCIAL:
            counts["totalCommercialUnits"] += 1
            counts["totalAvailableCommercialUnits"] += int(available)
        else:
            counts["totalUnits"] += 1
            counts["totalAvailableUnits"] += int(available)
    return counts


def wing_status_summary(project):
    """
    Per wing residential/commercial unit counts by status (summary PDF).
    Returns [{"name", "residential": {status: n}, "commercial": {status: n}}].
    """
    summary = []
    wings = {w.id: {"name": w.name, "residential": {}, "commercial": {}} for w in project.wings.all()}
    project_level = {"name": "Project", "residential": {}, "commercial": {}}

    rows = Unit.objects.filter(floor__project=project).values_list("floor__wing_id", "floor__type", "status")
    for wing_id, floor_type, status in rows:
        bucket = wings.get(wing_id, project_level)
        side = "commercial" if floor_type == FloorType.COMMERCIAL else "residential"
        bucket[side][status] = bucket[side].get(status, 0) + 1

    summary.extend(wings.values())
    if project_level["residential"] or project_level["commercial"]:
        summary.append(project_level)
    return summary
