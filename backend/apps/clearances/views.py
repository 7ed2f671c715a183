"""
Clearance API views.

All mutations flow through service layer.
All endpoints define permission_classes per API contract.
Identity always comes from request.user, never from the request body.
"""

import logging

from django.core.files.storage import default_storage
from django.http import FileResponse, Http404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.response import Response

from core.exceptions import ValidationError, error_response
from core.permissions import (
    STAFF_ROLES,
    IsAuthenticatedReadOnly,
    IsResident,
    IsStaff,
)
from apps.clearances import services
from apps.clearances.models import ClearanceRequest, RequestStatus
from apps.clearances.serializers import (
    CancelClearanceRequestSerializer,
    ClearanceRequestListSerializer,
    ClearanceRequestSerializer,
    ClearanceTypeSerializer,
    CreateClearanceRequestSerializer,
    ProcessClearanceRequestSerializer,
    RecordPaymentSerializer,
)
from apps.residents.services import get_resident_for_user

logger = logging.getLogger(__name__)

# Soft failures deliberately do not say which guard refused the operation
REFUSED_MESSAGE = "The operation could not be completed for this request"


def _origin(name):
    return f"api.clearances.{name}"


def _is_staff(request):
    return getattr(request.user, "role", None) in STAFF_ROLES


def _refused():
    return error_response(
        "OPERATION_REFUSED", REFUSED_MESSAGE, status.HTTP_409_CONFLICT
    )


def _not_found(requestId):
    return error_response(
        "NOT_FOUND",
        f"ClearanceRequest {requestId} does not exist",
        status.HTTP_404_NOT_FOUND,
    )


def _visible_request(request, requestId):
    """Fetch a request the caller may see; residents only see their own."""
    clearance = services.get_request(requestId)
    if clearance is None:
        return None
    if _is_staff(request):
        return clearance
    resident = get_resident_for_user(request.user.id)
    if resident is None or resident.id != clearance.resident_id:
        return None
    return clearance


def _detail(requestId):
    clearance = services.get_request(requestId)
    return Response(
        {"data": ClearanceRequestSerializer(clearance).data},
        status=status.HTTP_200_OK,
    )


@api_view(["GET"])
@permission_classes([IsAuthenticatedReadOnly])
def list_clearance_types(request):
    """
    GET /api/v1/clearance-types

    Active clearance types a resident can request.
    """
    types = services.list_active_clearance_types()
    return Response(
        {"data": ClearanceTypeSerializer(types, many=True).data},
        status=status.HTTP_200_OK,
    )


@api_view(["POST", "GET"])
def create_or_list_requests(request):
    """
    POST /api/v1/clearances - Submit a ClearanceRequest
    GET /api/v1/clearances - List ClearanceRequests
    """
    if request.method == "POST":
        if not (IsResident().has_permission(request, None) or _is_staff(request)):
            return error_response(
                "FORBIDDEN",
                "You do not have permission to perform this action",
                status.HTTP_403_FORBIDDEN,
            )

        serializer = CreateClearanceRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if _is_staff(request):
            # Walk-in submission recorded by staff on behalf of a resident
            resident_id = data.get("residentId")
            if resident_id is None:
                raise ValidationError("residentId is required for staff submissions")
        else:
            resident = get_resident_for_user(request.user.id)
            if resident is None:
                raise ValidationError("No resident profile is linked to this account")
            resident_id = resident.id

        clearance = services.create_request(
            resident_id,
            data["clearanceTypeId"],
            data["purpose"],
            submitted_by_user_id=request.user.id,
            origin=_origin("create"),
        )
        return Response(
            {"data": ClearanceRequestSerializer(services.get_request(clearance.id)).data},
            status=status.HTTP_201_CREATED,
        )

    if not IsAuthenticatedReadOnly().has_permission(request, None):
        return error_response(
            "FORBIDDEN",
            "You do not have permission to perform this action",
            status.HTTP_403_FORBIDDEN,
        )

    queryset = ClearanceRequest.objects.select_related("clearance_type")
    status_filter = request.query_params.get("status")
    if status_filter and status_filter not in RequestStatus.values:
        raise ValidationError(
            "Invalid status filter", {"allowed": list(RequestStatus.values)}
        )

    if _is_staff(request):
        queryset = (
            queryset.with_status(status_filter)
            if status_filter
            else queryset.order_by("-request_date")
        )
    else:
        resident = get_resident_for_user(request.user.id)
        if resident is None:
            queryset = queryset.none()
        else:
            queryset = queryset.for_resident(resident.id)
            if status_filter:
                queryset = queryset.filter(status=status_filter)

    paginator = LimitOffsetPagination()
    paginator.default_limit = 50
    paginator.max_limit = 100

    page = paginator.paginate_queryset(queryset, request)
    serializer = ClearanceRequestListSerializer(page, many=True)
    return paginator.get_paginated_response(serializer.data)


@api_view(["GET"])
@permission_classes([IsStaff])
def list_pending_requests(request):
    """
    GET /api/v1/clearances/pending

    Processing queue: SUBMITTED and PENDING requests, oldest first.
    """
    requests = services.list_awaiting_review()
    return Response(
        {"data": ClearanceRequestListSerializer(requests, many=True).data},
        status=status.HTTP_200_OK,
    )


@api_view(["GET"])
@permission_classes([IsAuthenticatedReadOnly])
def get_request(request, requestId):
    """
    GET /api/v1/clearances/{requestId}
    """
    clearance = _visible_request(request, requestId)
    if clearance is None:
        return _not_found(requestId)
    return Response(
        {"data": ClearanceRequestSerializer(clearance).data},
        status=status.HTTP_200_OK,
    )


@api_view(["POST"])
@permission_classes([IsStaff])
def process_request(request, requestId):
    """
    POST /api/v1/clearances/{requestId}/process

    Approve or reject a request awaiting review.
    """
    serializer = ProcessClearanceRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    clearance = services.process_request(
        requestId,
        serializer.validated_data["approve"],
        serializer.validated_data.get("remarks"),
        request.user.id,
        origin=_origin("process"),
    )
    return _detail(clearance.id)


@api_view(["POST"])
@permission_classes([IsResident])
def cancel_request(request, requestId):
    """
    POST /api/v1/clearances/{requestId}/cancel

    Resident cancels their own request while it awaits review.
    """
    serializer = CancelClearanceRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    if not services.cancel_request(
        requestId,
        request.user.id,
        serializer.validated_data["reason"],
        origin=_origin("cancel"),
    ):
        return _refused()
    return _detail(requestId)


@api_view(["POST"])
@permission_classes([IsStaff])
def record_payment(request, requestId):
    """
    POST /api/v1/clearances/{requestId}/record-payment
    """
    serializer = RecordPaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    if not services.record_payment(
        requestId,
        request.user.id,
        official_receipt_number=serializer.validated_data.get(
            "officialReceiptNumber"
        ),
        origin=_origin("record_payment"),
    ):
        return _refused()
    return _detail(requestId)


@api_view(["POST"])
@permission_classes([IsStaff])
def release_request(request, requestId):
    """
    POST /api/v1/clearances/{requestId}/release

    Release the clearance; the document is issued after the response commits.
    """
    if not services.mark_released(
        requestId, request.user.id, origin=_origin("release")
    ):
        return _refused()
    return _detail(requestId)


@api_view(["POST"])
@permission_classes([IsStaff])
def regenerate_document(request, requestId):
    """
    POST /api/v1/clearances/{requestId}/regenerate-document
    """
    path = services.regenerate_document(
        requestId, request.user.id, origin=_origin("regenerate_document")
    )
    if path is None:
        return error_response(
            "DOCUMENT_ISSUANCE_FAILED",
            "Document could not be generated; see documentError",
            status.HTTP_502_BAD_GATEWAY,
            {"requestId": str(requestId)},
        )
    return _detail(requestId)


@api_view(["GET"])
@permission_classes([IsAuthenticatedReadOnly])
def download_document(request, requestId):
    """
    GET /api/v1/clearances/{requestId}/document

    Download the issued clearance PDF.
    """
    clearance = _visible_request(request, requestId)
    if clearance is None or not clearance.document_path:
        raise Http404("Clearance document not found")

    try:
        file = default_storage.open(clearance.document_path, "rb")
    except OSError:
        raise Http404("File not found")
    return FileResponse(
        file,
        as_attachment=True,
        filename=f"Clearance_{clearance.reference_number}.pdf",
    )
