import logging

from django.db import transaction
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.views import NotFoundMessageMixin
from .models import Category
from .serializers import CategorySerializer, PrecedenceBatchSerializer

log = logging.getLogger(__name__)


class CategoryViewSet(NotFoundMessageMixin, viewsets.ModelViewSet):
    """
    GET    /api/category/              -> plain list, precedence asc, newest first
    POST   /api/category/              -> {message, categoryId}
    PUT    /api/category/<id>/         -> updated category
    DELETE /api/category/<id>/         -> immutable categories rejected
    PATCH  /api/category/precedence/   -> batch reorder {items:[{id, precedence}]}
    """
    queryset = Category.objects.all().order_by("precedence", "-created_at")
    serializer_class = CategorySerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None
    not_found_message = "Category not found"
    http_method_names = ["get", "post", "put", "patch", "delete", "head", "options"]

    def create(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        category = ser.save()
        log.info("Category %s created", category.name)
        return Response(
            {"message": "Category created successfully", "categoryId": category.id},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        # PUT bhi partial hai: sirf bheje gaye fields badlenge
        kwargs["partial"] = True
        return super().update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        category = self.get_object()
        if category.is_immutable:
            raise ValidationError({"type": "Immutable categories cannot be deleted"})
        category.delete()
        return Response({"message": "Category deleted successfully"}, status=status.HTTP_200_OK)

    @action(detail=False, methods=["patch"], url_path="precedence")
    def precedence(self, request):
        ser = PrecedenceBatchSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        items = ser.validated_data["items"]

        matched = modified = 0
        with transaction.atomic():
            for item in items:
                category = Category.objects.select_for_update().filter(pk=item["id"]).first()
                if category is None:
                    continue
                matched += 1
                if category.precedence != item["precedence"]:
                    Category.objects.filter(pk=category.pk).update(precedence=item["precedence"])
                    modified += 1

        updated = Category.objects.filter(pk__in=[i["id"] for i in items]).order_by("precedence", "-created_at")
        return Response(
            {
                "message": "Precedence updated",
                "matched": matched,
                "modified": modified,
                "updated": CategorySerializer(updated, many=True).data,
            }
        )
