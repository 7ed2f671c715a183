"""
URL routing for clearance endpoints.
"""

from django.urls import path
from apps.clearances import views

app_name = "clearances"

urlpatterns = [
    path("clearance-types", views.list_clearance_types, name="list-clearance-types"),
    path(
        "clearances", views.create_or_list_requests, name="create-or-list-requests"
    ),  # POST, GET
    path("clearances/pending", views.list_pending_requests, name="list-pending"),
    path("clearances/<uuid:requestId>", views.get_request, name="get-request"),
    path(
        "clearances/<uuid:requestId>/process",
        views.process_request,
        name="process-request",
    ),
    path(
        "clearances/<uuid:requestId>/cancel", views.cancel_request, name="cancel-request"
    ),
    path(
        "clearances/<uuid:requestId>/record-payment",
        views.record_payment,
        name="record-payment",
    ),
    path(
        "clearances/<uuid:requestId>/release",
        views.release_request,
        name="release-request",
    ),
    path(
        "clearances/<uuid:requestId>/regenerate-document",
        views.regenerate_document,
        name="regenerate-document",
    ),
    path(
        "clearances/<uuid:requestId>/document",
        views.download_document,
        name="download-document",
    ),
]
