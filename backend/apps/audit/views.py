"""
Audit log views - query audit log entries.

Read-only - audit logs are append-only.
"""

import math
from datetime import timezone as dt_timezone
from uuid import UUID

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.audit import services
from apps.audit.serializers import AuditLogSerializer
from core.exceptions import ValidationError
from core.permissions import IsAdmin

AUDITED_ENTITY_TYPES = ("ClearanceRequest",)


def _parse_uuid(raw, label):
    try:
        return UUID(raw)
    except ValueError:
        raise ValidationError(f"Invalid {label} format")


def _parse_moment(raw, label):
    """Accept an ISO 8601 datetime or a bare date."""
    raw = raw.strip()
    try:
        # A bare date stays a date so the service can widen it to the whole day
        moment = parse_date(raw) if len(raw) == 10 else parse_datetime(raw)
    except ValueError:
        moment = None
    if moment is None:
        raise ValidationError(f"Invalid {label} format (use ISO 8601)")
    if hasattr(moment, "tzinfo") and timezone.is_naive(moment):
        moment = timezone.make_aware(moment, dt_timezone.utc)
    return moment


def _parse_positive_int(raw, label, default):
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Invalid {label}")


def _validate_entity_type(entity_type):
    if entity_type not in AUDITED_ENTITY_TYPES:
        raise ValidationError(
            "Invalid entityType", {"allowed": list(AUDITED_ENTITY_TYPES)}
        )


@api_view(["GET"])
@permission_classes([IsAdmin])
def query_audit_log(request):
    """
    GET /api/v1/audit/

    Query audit log entries with optional filters, most recent first.
    """
    params = request.query_params
    filters = {}

    if params.get("entityType"):
        _validate_entity_type(params["entityType"])
        filters["entity_type"] = params["entityType"]
    if params.get("entityId"):
        filters["entity_id"] = _parse_uuid(params["entityId"], "entityId")
    if params.get("actorId"):
        filters["actor_id"] = _parse_uuid(params["actorId"], "actorId")
    if params.get("action"):
        filters["action"] = params["action"].strip()
    if params.get("fromDate"):
        filters["start"] = _parse_moment(params["fromDate"], "fromDate")
    if params.get("toDate"):
        filters["end"] = _parse_moment(params["toDate"], "toDate")

    page = _parse_positive_int(params.get("page"), "page", 1)
    page_size = _parse_positive_int(
        params.get("pageSize"), "pageSize", services.DEFAULT_PAGE_SIZE
    )

    items, total = services.query_entries(page=page, page_size=page_size, **filters)

    # Echo the clamped values the service actually used
    page = max(page, 1)
    page_size = (
        min(page_size, services.MAX_PAGE_SIZE)
        if page_size >= 1
        else services.DEFAULT_PAGE_SIZE
    )

    return Response(
        {
            "results": AuditLogSerializer(items, many=True).data,
            "count": total,
            "page": page,
            "pageSize": page_size,
            "totalPages": math.ceil(total / page_size) if total else 0,
        },
        status=status.HTTP_200_OK,
    )


@api_view(["GET"])
@permission_classes([IsAdmin])
def recent_audit_log(request):
    """
    GET /api/v1/audit/recent?count=N

    Most recent entries for dashboards.
    """
    count = _parse_positive_int(request.query_params.get("count"), "count", 50)
    items = services.recent_entries(count)
    return Response(
        {"results": AuditLogSerializer(items, many=True).data},
        status=status.HTTP_200_OK,
    )


@api_view(["GET"])
@permission_classes([IsAdmin])
def entity_audit_history(request, entityType, entityId):
    """
    GET /api/v1/audit/entities/{entityType}/{entityId}

    Full history of one entity, most recent first.
    """
    _validate_entity_type(entityType)
    entity_uuid = _parse_uuid(entityId, "entityId")
    items = services.entity_history(entityType, entity_uuid)
    return Response(
        {"results": AuditLogSerializer(items, many=True).data},
        status=status.HTTP_200_OK,
    )
