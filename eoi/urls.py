from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import EOIViewSet

router = DefaultRouter()
router.register(r"eoi", EOIViewSet, basename="eoi")

urlpatterns = [path("", include(router.urls))]
