from django.contrib import admin
from django.urls import include, path

from .health import health_check

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/health/", health_check),
    path("health/", include("health.urls")),
    path("api/v1/auth/", include("apps.users.urls")),
    path("api/v1/audit/", include("apps.audit.urls")),
    # Clearance endpoints are defined directly under /api/v1 (e.g., /api/v1/clearances)
    # so this include must come after the more specific prefixes above.
    path("api/v1/", include("apps.clearances.urls")),
]
