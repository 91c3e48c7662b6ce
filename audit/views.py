import logging

from django.db.models import Count
from rest_framework import mixins, status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.pagination import LimitPagePagination
from common.utils import day_end, day_start, every_term_matches, parse_date
from common.views import NotFoundMessageMixin
from .models import AuditLog
from .serializers import AuditLogCreateSerializer, AuditLogSerializer

log = logging.getLogger(__name__)

SEARCH_FIELDS = ["source", "description", "actor_user_id", "actor_username", "action"]


class AuditLogViewSet(
    NotFoundMessageMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """
    GET  /api/audit/logs/?search=&source=&userId=&action=&startDate=&endDate=&page=&limit=
    GET  /api/audit/logs/<id>/
    POST /api/audit/logs/
    """
    serializer_class = AuditLogSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = LimitPagePagination
    pagination_total_key = "totalLogs"
    not_found_message = "Audit log not found"

    def get_queryset(self):
        qs = AuditLog.objects.all().order_by("-timestamp", "-id")
        if self.action != "list":
            return qs

        params = self.request.query_params
        qs = qs.filter(every_term_matches(SEARCH_FIELDS, params.get("search")))

        if params.get("source"):
            qs = qs.filter(source=params["source"])
        if params.get("userId"):
            qs = qs.filter(actor_user_id=params["userId"])
        if params.get("action"):
            qs = qs.filter(action=params["action"])

        start = parse_date(params.get("startDate"))
        end = parse_date(params.get("endDate"))
        if start:
            qs = qs.filter(timestamp__gte=day_start(start))
        if end:
            qs = qs.filter(timestamp__lte=day_end(end))
        return qs

    def create(self, request, *args, **kwargs):
        ser = AuditLogCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        entry = ser.save()
        return Response(
            {"message": "Audit log created successfully", "logId": entry.id},
            status=status.HTTP_201_CREATED,
        )


class AuditSourcesView(APIView):
    """GET /api/audit/sources/ -> distinct sources, sorted"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        sources = sorted(set(AuditLog.objects.values_list("source", flat=True)))
        return Response({"sources": sources, "count": len(sources)})


class AuditStatisticsView(APIView):
    """GET /api/audit/statistics/ -> counts per action/source + 5 most recent"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        action_stats = (
            AuditLog.objects.order_by().values("action").annotate(count=Count("id")).order_by("-count", "action")
        )
        source_stats = (
            AuditLog.objects.order_by().values("source").annotate(count=Count("id")).order_by("-count", "source")
        )
        recent = AuditLog.objects.order_by("-timestamp", "-id")[:5]

        return Response(
            {
                "statistics": {
                    "actionStats": [{"action": r["action"], "count": r["count"]} for r in action_stats],
                    "sourceStats": [{"source": r["source"], "count": r["count"]} for r in source_stats],
                    "recentActivity": AuditLogSerializer(recent, many=True).data,
                }
            }
        )
