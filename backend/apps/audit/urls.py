"""
URL routing for audit log endpoints.
"""

from django.urls import path
from apps.audit import views

app_name = "audit"

urlpatterns = [
    path("", views.query_audit_log, name="query-audit-log"),
    path("recent", views.recent_audit_log, name="recent-audit-log"),
    path(
        "entities/<str:entityType>/<str:entityId>",
        views.entity_audit_history,
        name="entity-audit-history",
    ),
]
