import logging

from rest_framework import status, viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.pagination import LimitPagePagination
from common.utils import ordering_from_params
from common.views import NotFoundMessageMixin
from .filters import SORT_FIELDS, build_eoi_filter
from .models import EOI
from .serializers import EOISerializer
from .services import create_eoi

log = logging.getLogger(__name__)


class EOIViewSet(NotFoundMessageMixin, viewsets.ModelViewSet):
    """
    GET    /api/eoi/?search=&applicant=&manager=&config=&eoiNo=&contact=&pan=&status=
                    &startDate=&endDate=&minAmount=&maxAmount=&page=&limit=&sortBy=&sortOrder=
    POST   /api/eoi/            eoiNo optional (max+1 / 1001)
    GET    /api/eoi/<id>/
    PUT    /api/eoi/<id>/       partial; eoiNo change -> 400
    DELETE /api/eoi/<id>/
    """
    serializer_class = EOISerializer
    permission_classes = [IsAuthenticated]
    pagination_class = LimitPagePagination
    pagination_total_key = "totalEois"
    not_found_message = "EOI not found"

    def get_queryset(self):
        qs = EOI.objects.all()
        if self.action != "list":
            return qs
        params = self.request.query_params
        ordering = ordering_from_params(params, SORT_FIELDS, "createdAt")
        return qs.filter(build_eoi_filter(params)).order_by(*ordering)

    def retrieve(self, request, *args, **kwargs):
        return Response({"success": True, "data": self.get_serializer(self.get_object()).data})

    def create(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        eoi = create_eoi(ser.validated_data)
        log.info("EOI %s created", eoi.eoi_no)
        return Response(
            {"success": True, "message": "EOI created successfully", "data": self.get_serializer(eoi).data},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        eoi = self.get_object()
        if "eoiNo" in request.data:
            raise ValidationError({"eoiNo": "EOI number cannot be updated"})
        ser = self.get_serializer(eoi, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response({"success": True, "message": "EOI updated successfully", "data": ser.data})

    def destroy(self, request, *args, **kwargs):
        eoi = self.get_object()
        data = self.get_serializer(eoi).data
        eoi.delete()
        return Response({"success": True, "message": "EOI deleted successfully", "data": data})
