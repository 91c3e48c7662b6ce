from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import BankDetailViewSet, ProjectStructureView, ProjectViewSet, UnitViewSet

router = DefaultRouter()
router.register(r"project", ProjectViewSet, basename="inventory-project")
router.register(r"unit", UnitViewSet, basename="inventory-unit")
router.register(r"bank", BankDetailViewSet, basename="inventory-bank")

urlpatterns = [
    path("project-structure/", ProjectStructureView.as_view(), name="inventory-project-structure"),
    path("", include(router.urls)),
]
