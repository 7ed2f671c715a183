"""
Serializers for clearance models.

No business logic in serializers - validation only.
All mutations flow through service layer.
"""

from rest_framework import serializers
from apps.clearances.models import ClearanceRequest, ClearanceType


class ClearanceTypeSerializer(serializers.ModelSerializer):
    """Serializer for ClearanceType."""

    id = serializers.UUIDField(read_only=True)
    processingDays = serializers.IntegerField(source="processing_days", read_only=True)
    isActive = serializers.BooleanField(source="is_active", read_only=True)

    class Meta:
        model = ClearanceType
        fields = ["id", "name", "description", "fee", "processingDays", "isActive"]
        read_only_fields = fields


class ClearanceRequestSerializer(serializers.ModelSerializer):
    """Serializer for ClearanceRequest (read-only view of the lifecycle)."""

    id = serializers.UUIDField(read_only=True)
    referenceNumber = serializers.CharField(source="reference_number")
    residentId = serializers.UUIDField(source="resident_id")
    residentName = serializers.CharField(source="resident.full_name")
    clearanceTypeId = serializers.UUIDField(source="clearance_type_id")
    clearanceTypeName = serializers.CharField(source="clearance_type.name")
    fee = serializers.DecimalField(
        source="clearance_type.fee", max_digits=10, decimal_places=2
    )
    requestDate = serializers.DateTimeField(source="request_date")
    processedBy = serializers.UUIDField(source="processed_by_id", allow_null=True)
    processedDate = serializers.DateTimeField(source="processed_date", allow_null=True)
    isPaid = serializers.BooleanField(source="is_paid")
    paidDate = serializers.DateTimeField(source="paid_date", allow_null=True)
    collectedBy = serializers.UUIDField(source="collected_by_id", allow_null=True)
    amountPaid = serializers.DecimalField(
        source="amount_paid", max_digits=10, decimal_places=2, allow_null=True
    )
    officialReceiptNumber = serializers.CharField(
        source="official_receipt_number", allow_null=True
    )
    releasedDate = serializers.DateTimeField(source="released_date", allow_null=True)
    releasedBy = serializers.UUIDField(source="released_by_id", allow_null=True)
    expiryDate = serializers.DateTimeField(source="expiry_date", allow_null=True)
    cancelledBy = serializers.UUIDField(source="cancelled_by_id", allow_null=True)
    cancelledDate = serializers.DateTimeField(source="cancelled_date", allow_null=True)
    cancellationReason = serializers.CharField(
        source="cancellation_reason", allow_null=True
    )
    documentPath = serializers.CharField(source="document_path", allow_null=True)
    documentGeneratedDate = serializers.DateTimeField(
        source="document_generated_date", allow_null=True
    )
    documentError = serializers.CharField(source="document_error", allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")

    class Meta:
        model = ClearanceRequest
        fields = [
            "id",
            "referenceNumber",
            "residentId",
            "residentName",
            "clearanceTypeId",
            "clearanceTypeName",
            "fee",
            "purpose",
            "status",
            "requestDate",
            "processedBy",
            "processedDate",
            "remarks",
            "isPaid",
            "paidDate",
            "collectedBy",
            "amountPaid",
            "officialReceiptNumber",
            "releasedDate",
            "releasedBy",
            "expiryDate",
            "cancelledBy",
            "cancelledDate",
            "cancellationReason",
            "documentPath",
            "documentGeneratedDate",
            "documentError",
            "version",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields


class ClearanceRequestListSerializer(serializers.ModelSerializer):
    """Compact row for listings."""

    id = serializers.UUIDField(read_only=True)
    referenceNumber = serializers.CharField(source="reference_number")
    residentId = serializers.UUIDField(source="resident_id")
    clearanceTypeName = serializers.CharField(source="clearance_type.name")
    requestDate = serializers.DateTimeField(source="request_date")
    isPaid = serializers.BooleanField(source="is_paid")
    expiryDate = serializers.DateTimeField(source="expiry_date", allow_null=True)

    class Meta:
        model = ClearanceRequest
        fields = [
            "id",
            "referenceNumber",
            "residentId",
            "clearanceTypeName",
            "status",
            "requestDate",
            "isPaid",
            "expiryDate",
        ]
        read_only_fields = fields


class CreateClearanceRequestSerializer(serializers.Serializer):
    """Input for submitting a request. residentId is only honoured for staff."""

    clearanceTypeId = serializers.UUIDField()
    purpose = serializers.CharField(max_length=500, trim_whitespace=True)
    residentId = serializers.UUIDField(required=False)


class ProcessClearanceRequestSerializer(serializers.Serializer):
    """Input for approve/reject."""

    approve = serializers.BooleanField()
    remarks = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=1000
    )


class CancelClearanceRequestSerializer(serializers.Serializer):
    """Input for resident cancellation."""

    reason = serializers.CharField(max_length=500, trim_whitespace=True)


class RecordPaymentSerializer(serializers.Serializer):
    """Input for cash collection."""

    officialReceiptNumber = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=50
    )
