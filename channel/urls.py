# channel/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_nested import routers

from .views import ClientPartnerViewSet, PartnerEmployeeViewSet

router = DefaultRouter()
router.register(r"client-partner", ClientPartnerViewSet, basename="client-partner")

partners_router = routers.NestedDefaultRouter(router, r"client-partner", lookup="partner")
partners_router.register(r"employees", PartnerEmployeeViewSet, basename="partner-employee")

urlpatterns = [
    path("", include(router.urls)),
    path("", include(partners_router.urls)),
]
