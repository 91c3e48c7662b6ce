# booking/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import BookingLedgerViewSet, ClientBookingViewSet

router = DefaultRouter()
router.register(r"client-booking", ClientBookingViewSet, basename="client-booking")
router.register(r"booking-ledger", BookingLedgerViewSet, basename="booking-ledger")

urlpatterns = [
    path("", include(router.urls)),
]
