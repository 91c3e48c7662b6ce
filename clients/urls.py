from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import ClientViewSet, VisitViewSet

router = DefaultRouter()
router.register(r"client", ClientViewSet, basename="client")
router.register(r"visit", VisitViewSet, basename="visit")

urlpatterns = [path("", include(router.urls))]
