import logging
import math

from django.db import IntegrityError, transaction
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from audit import services as audit
from common.excel import xlsx_response
from common.exceptions import Conflict
from common.pagination import positive_int
from common.pdf_utils import pdf_response
from common.utils import as_str, every_term_matches, parse_db_int, split_csv
from common.views import NotFoundMessageMixin
from .models import BankDetail, Floor, Project, STATUS_AVAILABLE, Unit
from .reports import availability_chart_pdf, build_status_summary_workbook, inventory_summary_pdf
from .serializers import (
    BankDetailSerializer,
    ProjectBasicSerializer,
    ProjectCreateSerializer,
    ProjectDetailSerializer,
    ProjectUpdateSerializer,
    UnitCreateSerializer,
    UnitSerializer,
    UnitStatusSerializer,
    UnitUpdateSerializer,
    UnitWithFloorSerializer,
)
from .services import fit_unit_span, next_unit_position, ordered_categories, project_counts, project_tree, resolve_status

log = logging.getLogger(__name__)

AUDIT_SOURCE_PROJECT = "Inventory"
AUDIT_SOURCE_UNIT = "Unit"


class ProjectViewSet(NotFoundMessageMixin, viewsets.ModelViewSet):
    """
    POST   /api/inventory/project/                        nested create
    GET    /api/inventory/project/?page=&limit=&search=   list + unit counts
    GET    /api/inventory/project/<id>/                   full tree
    PUT    /api/inventory/project/<id>/                   basic fields only
    DELETE /api/inventory/project/<id>/                   cascade

    Reports:
    GET    /api/inventory/project/<id>/availability-chart/   PDF
    GET    /api/inventory/project/<id>/summary/              PDF
    GET    /api/inventory/project/<id>/status-summary/       XLSX
    """
    queryset = Project.objects.all().order_by("-created_at", "-id")
    permission_classes = [IsAuthenticated]
    pagination_class = None
    not_found_message = "Project not found"
    http_method_names = ["get", "post", "put", "patch", "delete", "head", "options"]

    def get_serializer_class(self):
        if self.action == "create":
            return ProjectCreateSerializer
        if self.action in ("update", "partial_update"):
            return ProjectUpdateSerializer
        if self.action == "retrieve":
            return ProjectDetailSerializer
        return ProjectBasicSerializer

    def list(self, request, *args, **kwargs):
        search = request.query_params.get("search")
        page = positive_int(request.query_params.get("page"), 1)
        limit = positive_int(request.query_params.get("limit"), 10)

        qs = self.get_queryset().filter(every_term_matches(["name", "developer", "status"], search))
        total = qs.count()
        projects = qs[(page - 1) * limit:page * limit]

        data = []
        for project in projects:
            row = {
                "id": project.id,
                "name": project.name,
                "by": project.developer,
                "startDate": project.start_date,
                "status": project.status,
            }
            row.update(project_counts(project))
            data.append(row)

        return Response(
            {
                "success": True,
                "pagination": {
                    "totalProjects": total,
                    "totalPages": math.ceil(total / limit) if total else 0,
                    "currentPage": page,
                    "limitNumber": limit,
                    "search": search or None,
                },
                "count": len(data),
                "data": data,
            }
        )

    def create(self, request, *args, **kwargs):
        ser = ProjectCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        project = ser.save()

        audit.log_create(
            ProjectBasicSerializer(project).data, request, AUDIT_SOURCE_PROJECT, f"Created project: {project.name}"
        )
        log.info("Project %s created with %s wings", project.pk, project.wings.count())
        return Response(
            {"success": True, "data": {"projectId": project.id, "message": "Project created successfully"}},
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        project = self.get_object()
        return Response({"success": True, "data": ProjectDetailSerializer(project).data})

    def update(self, request, *args, **kwargs):
        project = self.get_object()
        before = ProjectBasicSerializer(project).data

        ser = ProjectUpdateSerializer(project, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        project = ser.save()

        audit.log_update(
            before, ProjectBasicSerializer(project).data, request, AUDIT_SOURCE_PROJECT,
            f"Updated project: {before['name']}",
        )
        return Response(
            {"success": True, "data": {"projectId": project.id, "message": "Project updated successfully"}}
        )

    def destroy(self, request, *args, **kwargs):
        project = self.get_object()
        snapshot = ProjectBasicSerializer(project).data
        name = project.name

        # wings / floors / units CASCADE se ud jayenge
        project.delete()

        audit.log_delete(snapshot, request, AUDIT_SOURCE_PROJECT, f"Deleted project: {name}")
        return Response(
            {"success": True, "message": "Project and all related entities deleted successfully"}
        )

    @action(detail=True, methods=["get"], url_path="availability-chart")
    def availability_chart(self, request, pk=None):
        project = self.get_object()
        pdf = availability_chart_pdf(project)
        return pdf_response(pdf, f"{project.name}-availability-chart.pdf", inline=True)

    @action(detail=True, methods=["get"], url_path="summary")
    def summary(self, request, pk=None):
        project = self.get_object()
        pdf = inventory_summary_pdf(project)
        return pdf_response(pdf, f"{project.name}-inventory-summary.pdf", inline=True)

    @action(detail=True, methods=["get"], url_path="status-summary")
    def status_summary(self, request, pk=None):
        project = self.get_object()
        wb, _totals = build_status_summary_workbook(project_tree(project), ordered_categories())
        return xlsx_response(wb, f"{project.name}-residential-status-summary.xlsx")


class ProjectStructureView(APIView):
    """GET /api/inventory/project-structure/ -> saare projects, wings/floors/units ke saath"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        projects = Project.objects.all().order_by("-created_at", "-id").prefetch_related("wings")
        return Response({"success": True, "data": ProjectDetailSerializer(projects, many=True).data})


class UnitViewSet(NotFoundMessageMixin, viewsets.ModelViewSet):
    """
    POST   /api/inventory/unit/
    GET    /api/inventory/unit/?floorId=&configuration=&status=a,b
    GET    /api/inventory/unit/<id>/
    PUT    /api/inventory/unit/<id>/
    PATCH  /api/inventory/unit/<id>/status/
    DELETE /api/inventory/unit/<id>/
    """
    queryset = Unit.objects.select_related("floor", "floor__wing").order_by("unit_number", "id")
    serializer_class = UnitSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None
    not_found_message = "Unit not found"
    http_method_names = ["get", "post", "put", "patch", "delete", "head", "options"]

    def get_queryset(self):
        qs = super().get_queryset()
        if self.action != "list":
            return qs

        params = self.request.query_params
        if params.get("floorId"):
            floor_id = parse_db_int(params["floorId"])
            # non-numeric floorId kuch match nahi karega
            qs = qs.filter(floor_id=floor_id) if floor_id is not None else qs.none()
        if params.get("configuration"):
            qs = qs.filter(configuration=params["configuration"])

        statuses = [s.lower() for s in split_csv(params.getlist("status"))]
        if statuses:
            qs = qs.filter(status__in=statuses)
        return qs

    def list(self, request, *args, **kwargs):
        units = list(self.get_queryset())
        return Response({"success": True, "count": len(units), "data": UnitWithFloorSerializer(units, many=True).data})

    def retrieve(self, request, *args, **kwargs):
        return Response({"success": True, "data": UnitWithFloorSerializer(self.get_object()).data})

    def create(self, request, *args, **kwargs):
        ser = UnitCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        floor = Floor.objects.select_related("wing").filter(pk=data["floorId"]).first()
        if floor is None:
            raise NotFound("Floor not found")
        if floor.units.filter(unit_number=data["unitNumber"]).exists():
            raise Conflict("Unit with this number already exists on this floor")

        status_name = resolve_status(data["status"])

        with transaction.atomic():
            # floor row lock, taaki do parallel creates capacity cross na karein
            Floor.objects.select_for_update().filter(pk=floor.pk).first()
            span = fit_unit_span(floor, data["unitSpan"])
            try:
                unit = Unit.objects.create(
                    floor=floor,
                    unit_number=data["unitNumber"],
                    area=data["area"],
                    configuration=data["configuration"],
                    unit_span=span,
                    status=status_name,
                    reserved_by_or_reason=data.get("reservedByOrReason") or None,
                    position=next_unit_position(floor),
                )
            except IntegrityError:
                raise Conflict("Unit with this number already exists on this floor")

        audit.log_create(
            UnitSerializer(unit).data, request, AUDIT_SOURCE_UNIT,
            f"Created unit {unit.unit_number} on floor {floor.display_number}",
        )
        return Response({"success": True, "data": UnitSerializer(unit).data}, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        unit = self.get_object()
        if "floorId" in request.data:
            raise ValidationError({"floorId": "Cannot change floorId. Create a new unit instead."})

        ser = UnitUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        before = UnitSerializer(unit).data

        if "unitNumber" in data and data["unitNumber"] != unit.unit_number:
            if unit.floor.units.filter(unit_number=data["unitNumber"]).exclude(pk=unit.pk).exists():
                raise Conflict("Unit with this number already exists on this floor")
            unit.unit_number = data["unitNumber"]
        if "area" in data:
            unit.area = data["area"]
        if "configuration" in data:
            unit.configuration = data["configuration"]
        if "status" in data:
            unit.status = resolve_status(data["status"])
        if "reservedByOrReason" in data:
            unit.reserved_by_or_reason = data["reservedByOrReason"] or None
        if "referenceId" in data:
            unit.reference_id = data["referenceId"] or None

        with transaction.atomic():
            if "unitSpan" in data:
                Floor.objects.select_for_update().filter(pk=unit.floor_id).first()
                unit.unit_span = fit_unit_span(unit.floor, data["unitSpan"], exclude_unit_id=unit.pk)
            unit.save()

        audit.log_update(
            before, UnitSerializer(unit).data, request, AUDIT_SOURCE_UNIT,
            f"Updated unit {before['unitNumber']} (ID: {unit.pk})",
        )
        return Response({"success": True, "data": UnitSerializer(unit).data})

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request, pk=None):
        ser = UnitStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        status_name = resolve_status(ser.validated_data["status"])

        unit = self.get_object()
        before = UnitSerializer(unit).data

        unit.status = status_name
        if status_name == STATUS_AVAILABLE:
            unit.reserved_by_or_reason = None
        elif "reservedByOrReason" in ser.validated_data:
            unit.reserved_by_or_reason = ser.validated_data["reservedByOrReason"] or None
        unit.save(update_fields=["status", "reserved_by_or_reason", "updated_at"])

        audit.log_update(
            before, UnitSerializer(unit).data, request, AUDIT_SOURCE_UNIT,
            f"Updated status of unit {unit.unit_number} from {before['status']} to {status_name}",
        )
        return Response({"success": True, "data": UnitSerializer(unit).data})

    def destroy(self, request, *args, **kwargs):
        unit = self.get_object()
        snapshot = UnitSerializer(unit).data
        unit.delete()
        audit.log_delete(
            snapshot, request, AUDIT_SOURCE_UNIT,
            f"Deleted unit {snapshot['unitNumber']} (ID: {as_str(kwargs.get('pk'))})",
        )
        return Response({"success": True, "message": "Unit deleted successfully"})


class BankDetailViewSet(NotFoundMessageMixin, viewsets.ModelViewSet):
    """
    GET    /api/inventory/bank/?projectId=
    POST   /api/inventory/bank/            ek project, ek account
    GET    /api/inventory/bank/<id>/
    PUT    /api/inventory/bank/<id>/       partial
    DELETE /api/inventory/bank/<id>/       ledger me use hua ho to 400
    """
    queryset = BankDetail.objects.select_related("project").order_by("-created_at", "-id")
    serializer_class = BankDetailSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None
    not_found_message = "Bank account not found"
    http_method_names = ["get", "post", "put", "delete", "head", "options"]

    def get_queryset(self):
        qs = super().get_queryset()
        if self.action == "list" and self.request.query_params.get("projectId"):
            project_id = parse_db_int(self.request.query_params["projectId"])
            qs = qs.filter(project_id=project_id) if project_id is not None else qs.none()
        return qs

    def list(self, request, *args, **kwargs):
        return Response({"success": True, "data": self.get_serializer(self.get_queryset(), many=True).data})

    def retrieve(self, request, *args, **kwargs):
        return Response({"success": True, "data": self.get_serializer(self.get_object()).data})

    def create(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        project_id = ser.validated_data["project_id"]
        if not Project.objects.filter(pk=project_id).exists():
            raise NotFound("Project not found")
        if BankDetail.objects.filter(project_id=project_id).exists():
            raise Conflict("Bank details already exist for this project")

        bank = ser.save()
        log.info("Bank details %s added for project %s", bank.pk, project_id)
        return Response(
            {"success": True, "message": "Bank details saved successfully", "data": self.get_serializer(bank).data},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        bank = self.get_object()
        ser = self.get_serializer(bank, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response({"success": True, "message": "Bank details updated successfully", "data": ser.data})

    def destroy(self, request, *args, **kwargs):
        bank = self.get_object()
        if bank.ledger_entries.exists():
            raise ValidationError("Bank account has ledger entries and cannot be deleted")
        bank.delete()
        return Response({"success": True, "message": "Bank details deleted successfully"})
