import logging

from django.db import transaction
from django.db.models import Prefetch
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.excel import build_table_workbook, xlsx_response
from common.pagination import LimitPagePagination
from common.utils import parse_db_int
from common.views import NotFoundMessageMixin
from .filters import filter_clients
from .models import Client, Remark, Visit
from .serializers import (
    ClientCreateSerializer,
    ClientDetailSerializer,
    ClientListSerializer,
    ClientSerializer,
    RemarkCreateSerializer,
    VisitCreateSerializer,
    VisitSerializer,
)

log = logging.getLogger(__name__)

CLIENT_EXPORT_HEADERS = [
    "Name", "Phone No", "Alt No", "Email", "Occupation", "Address", "Project", "Requirement",
    "Budget", "Visits", "Last Visit", "Reference", "Source", "Relation", "Closing", "Status",
    "Last Remark", "Note",
]


class ClientViewSet(NotFoundMessageMixin, viewsets.ModelViewSet):
    """
    POST   /api/client/                  client + first visit (visitData)
    GET    /api/client/?search=&minBudget=&maxBudget=&requirement=&project=
                       &manager=&fromDate=&toDate=&reference=&source=&relation=&closing=&status=
    GET    /api/client/<id>/             visits ascending + remarks
    PATCH  /api/client/<id>/
    DELETE /api/client/<id>/             visits cascade
    GET    /api/client/export/           XLSX
    """
    permission_classes = [IsAuthenticated]
    pagination_class = LimitPagePagination
    pagination_total_key = "totalClients"
    not_found_message = "Client not found"
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        if self.action in ("list", "export"):
            visits = Prefetch("visits", queryset=Visit.objects.prefetch_related("remarks"))
            return filter_clients(self.request.query_params).prefetch_related(visits).order_by("-created_at", "-id")
        if self.action == "retrieve":
            visits = Prefetch("visits", queryset=Visit.objects.order_by("date", "id").prefetch_related("remarks"))
            return Client.objects.prefetch_related(visits)
        return Client.objects.all()

    def get_serializer_class(self):
        if self.action == "create":
            return ClientCreateSerializer
        if self.action == "list":
            return ClientListSerializer
        if self.action == "retrieve":
            return ClientDetailSerializer
        return ClientSerializer

    def create(self, request, *args, **kwargs):
        if not isinstance(request.data.get("visitData"), dict):
            raise ValidationError({"visitData": "visitData is required"})
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        client = ser.save()
        log.info("Client %s created with first visit", client.pk)
        return Response(
            {
                "success": True,
                "message": "Client created successfully",
                "data": ClientDetailSerializer(client).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        return Response({"success": True, "data": self.get_serializer(self.get_object()).data})

    def partial_update(self, request, *args, **kwargs):
        client = self.get_object()
        ser = ClientSerializer(client, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response({"success": True, "message": "Client updated successfully", "data": ser.data})

    def destroy(self, request, *args, **kwargs):
        client = self.get_object()
        client_id = client.pk
        client.delete()
        return Response({"success": True, "message": "Client deleted successfully", "clientId": client_id})

    @action(detail=False, methods=["get"], url_path="export")
    def export(self, request):
        rows = []
        for client in self.get_queryset():
            visits = sorted(client.visits.all(), key=lambda v: (v.date, v.id))
            latest = visits[-1] if visits else None
            remarks = [r for v in visits for r in v.remarks.all()]
            rows.append(
                [
                    client.full_name,
                    client.phone_no,
                    client.alt_no,
                    client.email,
                    client.occupation,
                    client.address,
                    client.project,
                    client.requirement,
                    float(client.budget),
                    len(visits),
                    timezone.localtime(latest.date).strftime("%d-%m-%Y") if latest else "",
                    latest.reference if latest else "",
                    latest.source if latest else "",
                    latest.relation if latest else "",
                    latest.closing if latest else "",
                    latest.status.upper() if latest else "",
                    remarks[-1].remark if remarks else "",
                    client.note,
                ]
            )
        wb = build_table_workbook("Clients", CLIENT_EXPORT_HEADERS, rows)
        return xlsx_response(wb, f"clients-{timezone.localdate():%Y-%m-%d}.xlsx")


class VisitViewSet(
    NotFoundMessageMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    POST   /api/visit/                           clientId + visit fields
    PATCH  /api/visit/<id>/
    DELETE /api/visit/<id>/                      client ki akeli visit delete nahi hoti
    POST   /api/visit/<id>/remarks/
    DELETE /api/visit/<id>/remarks/<remarkId>/
    """
    queryset = Visit.objects.prefetch_related("remarks")
    permission_classes = [IsAuthenticated]
    not_found_message = "Visit not found"
    http_method_names = ["post", "patch", "delete", "head", "options"]

    def get_serializer_class(self):
        if self.action == "create":
            return VisitCreateSerializer
        return VisitSerializer

    def create(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        visit = ser.save()
        return Response(
            {"success": True, "message": "Visit created successfully", "data": VisitSerializer(visit).data},
            status=status.HTTP_201_CREATED,
        )

    def partial_update(self, request, *args, **kwargs):
        visit = self.get_object()
        ser = VisitSerializer(visit, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response({"success": True, "message": "Visit updated successfully", "data": ser.data})

    def destroy(self, request, *args, **kwargs):
        visit = self.get_object()
        with transaction.atomic():
            client = Client.objects.select_for_update().get(pk=visit.client_id)
            if client.visits.count() <= 1:
                raise ValidationError(
                    "Cannot delete the only visit for this client. A client must have at least one visit."
                )
            visit_id = visit.pk
            visit.delete()
        return Response({"success": True, "message": "Visit deleted successfully", "visitId": visit_id})

    @action(detail=True, methods=["post"], url_path="remarks")
    def add_remark(self, request, pk=None):
        visit = self.get_object()
        ser = RemarkCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        Remark.objects.create(visit=visit, remark=ser.validated_data["remark"])
        visit = self.get_queryset().get(pk=visit.pk)
        return Response(
            {"success": True, "message": "Remark added successfully", "data": VisitSerializer(visit).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["delete"], url_path=r"remarks/(?P<remark_id>[^/.]+)")
    def delete_remark(self, request, pk=None, remark_id=None):
        remark_pk = parse_db_int(remark_id)
        remark = Remark.objects.filter(pk=remark_pk, visit_id=parse_db_int(pk)).first() if remark_pk else None
        if remark is None:
            raise NotFound("Visit or remark not found")
        remark.delete()
        visit = get_object_or_404(self.get_queryset(), pk=pk)
        return Response({"success": True, "message": "Remark deleted successfully", "data": VisitSerializer(visit).data})
