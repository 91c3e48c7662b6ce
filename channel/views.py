import logging

from django.db.models import Prefetch
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from openpyxl import Workbook

from common.excel import THIN_BORDER, autosize_columns, style_header_row, xlsx_response
from common.pagination import LimitPagePagination
from common.utils import every_term_matches, parse_db_int
from common.views import NotFoundMessageMixin
from .models import ClientPartner, PartnerEmployee
from .serializers import ClientPartnerSerializer, PartnerEmployeeSerializer
from .utils import generate_cp_id

log = logging.getLogger(__name__)

PARTNER_SEARCH_FIELDS = ["name", "email", "phone_no"]

COMPANY_HEADERS = [
    "CP ID", "Company Name", "Owner Name", "Company Phone", "Company Email",
    "Total Employees", "Commission %", "Website", "Address", "Notes",
]
EMPLOYEE_HEADERS = [
    "Company Name", "Employee Name", "Position", "Email", "Phone", "Alt Phone", "Commission %",
]


def _na(value):
    return value if value not in (None, "") else "N/A"


def _append_rows(ws, headers, rows):
    ws.append(headers)
    style_header_row(ws, 1)
    for row in rows:
        ws.append(row)
        for cell in ws[ws.max_row]:
            cell.border = THIN_BORDER
    ws.freeze_panes = "A2"
    autosize_columns(ws)


class ClientPartnerViewSet(NotFoundMessageMixin, viewsets.ModelViewSet):
    """
    GET    /api/client-partner/?search=&page=&limit=
    POST   /api/client-partner/                    cpId auto
    GET    /api/client-partner/reference/          live employees (flat)
    GET    /api/client-partner/export/             XLSX (Companies + Employees)
    GET    /api/client-partner/<id>/
    PUT    /api/client-partner/<id>/
    DELETE /api/client-partner/<id>/               soft delete
    POST   /api/client-partner/<id>/restore/
    DELETE /api/client-partner/<id>/hard-delete/
    """
    serializer_class = ClientPartnerSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = LimitPagePagination
    pagination_total_key = "totalClientPartners"
    not_found_message = "Client partner not found"
    http_method_names = ["get", "post", "put", "patch", "delete", "head", "options"]

    def get_queryset(self):
        employees = Prefetch("employees", queryset=PartnerEmployee.objects.order_by("created_at", "id"))
        if self.action == "restore":
            return ClientPartner.objects.deleted()
        if self.action == "hard_delete":
            return ClientPartner.objects.all()
        qs = ClientPartner.objects.alive().prefetch_related(employees)
        if self.action in ("list", "export"):
            qs = qs.filter(every_term_matches(PARTNER_SEARCH_FIELDS, self.request.query_params.get("search")))
        return qs

    def get_not_found_message(self):
        if self.action == "restore":
            return "Deleted client partner not found"
        return self.not_found_message

    def create(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        partner = ser.save(cp_id=generate_cp_id(ser.validated_data["name"]))
        log.info("Client partner %s created", partner.cp_id)
        return Response(
            {"success": True, "message": "Client Partner created successfully", "data": self.get_serializer(partner).data},
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        return Response({"success": True, "data": self.get_serializer(self.get_object()).data})

    def update(self, request, *args, **kwargs):
        partner = self.get_object()
        ser = self.get_serializer(partner, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response({"success": True, "message": "Client partner updated successfully", "data": ser.data})

    def destroy(self, request, *args, **kwargs):
        partner = self.get_object()
        partner.is_deleted = True
        partner.save(update_fields=["is_deleted", "updated_at"])
        return Response({"success": True, "message": "Client partner deleted successfully"})

    @action(detail=True, methods=["post"], url_path="restore")
    def restore(self, request, pk=None):
        partner = self.get_object()
        partner.is_deleted = False
        partner.save(update_fields=["is_deleted", "updated_at"])
        return Response(
            {"success": True, "message": "Client partner restored successfully", "data": self.get_serializer(partner).data}
        )

    @action(detail=True, methods=["delete"], url_path="hard-delete")
    def hard_delete(self, request, pk=None):
        partner = self.get_object()
        cp_id = partner.cp_id
        partner.delete()
        log.info("Client partner %s permanently deleted", cp_id)
        return Response({"success": True, "message": "Client partner permanently deleted"})

    @action(detail=False, methods=["get"], url_path="reference")
    def reference(self, request):
        rows = (
            PartnerEmployee.objects.alive()
            .filter(partner__is_deleted=False)
            .select_related("partner")
            .order_by("partner__name", "first_name", "id")
        )
        references = [
            {"id": e.id, "firstName": e.first_name, "lastName": e.last_name, "companyName": e.partner.name}
            for e in rows
        ]
        return Response({"success": True, "references": references})

    @action(detail=False, methods=["get"], url_path="export")
    def export(self, request):
        partners = list(self.get_queryset())

        wb = Workbook()
        companies = wb.active
        companies.title = "Companies"
        company_rows = []
        employee_rows = []
        for cp in partners:
            live = [e for e in cp.employees.all() if not e.is_deleted]
            company_rows.append(
                [
                    cp.cp_id,
                    cp.name,
                    _na(cp.owner_name),
                    _na(cp.phone_no),
                    _na(cp.email),
                    len(live),
                    float(cp.commission_percentage) if cp.commission_percentage is not None else "N/A",
                    _na(cp.company_website),
                    _na(cp.address),
                    _na(cp.notes),
                ]
            )
            for e in live:
                employee_rows.append(
                    [
                        cp.name,
                        f"{e.first_name} {e.last_name}".strip(),
                        e.position or "-",
                        _na(e.email),
                        e.phone_no,
                        _na(e.alt_no),
                        float(e.commission_percentage),
                    ]
                )
        _append_rows(companies, COMPANY_HEADERS, company_rows)
        if employee_rows:
            _append_rows(wb.create_sheet("Employees"), EMPLOYEE_HEADERS, employee_rows)

        return xlsx_response(wb, f"client-partners-{timezone.localdate():%Y-%m-%d}.xlsx")


class PartnerEmployeeViewSet(
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    POST   /api/client-partner/<partner_pk>/employees/
    PUT    /api/client-partner/<partner_pk>/employees/<id>/
    DELETE /api/client-partner/<partner_pk>/employees/<id>/          soft
    POST   /api/client-partner/<partner_pk>/employees/<id>/restore/
    """
    serializer_class = PartnerEmployeeSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ["post", "put", "patch", "delete", "head", "options"]

    @property
    def partner_id(self):
        return parse_db_int(self.kwargs.get("partner_pk"))

    def get_partner(self):
        partner = ClientPartner.objects.alive().filter(pk=self.partner_id).first() if self.partner_id else None
        if partner is None:
            raise NotFound("Client partner not found")
        return partner

    def get_queryset(self):
        return PartnerEmployee.objects.filter(partner_id=self.partner_id)

    def get_employee(self, deleted=False):
        self.get_partner()
        qs = self.get_queryset().filter(is_deleted=deleted)
        employee = qs.filter(pk=parse_db_int(self.kwargs.get("pk"))).first()
        if employee is None:
            raise NotFound("Deleted employee not found" if deleted else "Employee not found")
        return employee

    def _partner_payload(self, partner, message, code=status.HTTP_200_OK):
        partner = get_object_or_404(ClientPartner.objects.prefetch_related("employees"), pk=partner.pk)
        return Response(
            {"success": True, "message": message, "data": ClientPartnerSerializer(partner).data},
            status=code,
        )

    def create(self, request, *args, **kwargs):
        partner = self.get_partner()
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ser.save(partner=partner)
        return self._partner_payload(partner, "Client partner employee created successfully", status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        employee = self.get_employee()
        ser = self.get_serializer(employee, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return self._partner_payload(employee.partner, "Client partner employee updated successfully")

    def destroy(self, request, *args, **kwargs):
        employee = self.get_employee()
        employee.is_deleted = True
        employee.save(update_fields=["is_deleted", "updated_at"])
        return self._partner_payload(employee.partner, "Client partner employee deleted successfully")

    @action(detail=True, methods=["post"], url_path="restore")
    def restore(self, request, partner_pk=None, pk=None):
        employee = self.get_employee(deleted=True)
        employee.is_deleted = False
        employee.save(update_fields=["is_deleted", "updated_at"])
        return self._partner_payload(employee.partner, "Client partner employee restored successfully")
