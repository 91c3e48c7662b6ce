from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import AuditLogViewSet, AuditSourcesView, AuditStatisticsView

router = DefaultRouter()
router.register(r"logs", AuditLogViewSet, basename="audit-log")

urlpatterns = [
    path("", include(router.urls)),
    path("sources/", AuditSourcesView.as_view(), name="audit-sources"),
    path("statistics/", AuditStatisticsView.as_view(), name="audit-statistics"),
]
