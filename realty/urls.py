"""
URL configuration for realty project.
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/", include("accounts.urls")),
    path("api/audit/", include("audit.urls")),
    path("api/inventory/", include("inventory.urls")),
    path("api/", include("setup.urls")),
    path("api/", include("eoi.urls")),
    path("api/", include("clients.urls")),
    path("api/", include("booking.urls")),
    path("api/", include("channel.urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
