"""
Clearance domain models: ClearanceType, ClearanceRequest.

ClearanceRequest rows are mutated only through apps.clearances.services and
are never physically deleted; terminal requests are kept for audit and history.
"""

import uuid
from django.db import models
from django.core.validators import MinValueValidator


class RequestStatus(models.TextChoices):
    SUBMITTED = "SUBMITTED", "Submitted"
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"
    CANCELLED = "CANCELLED", "Cancelled"
    FOR_RELEASE = "FOR_RELEASE", "For Release"
    RELEASED = "RELEASED", "Released"
    EXPIRED = "EXPIRED", "Expired"


# PENDING is a display label for queued re-review; both share one guard
AWAITING_REVIEW_STATUSES = (RequestStatus.SUBMITTED, RequestStatus.PENDING)
PAID_STATUSES = (
    RequestStatus.FOR_RELEASE,
    RequestStatus.RELEASED,
    RequestStatus.EXPIRED,
)
VALIDITY_STATUSES = (RequestStatus.RELEASED, RequestStatus.EXPIRED)


class ClearanceType(models.Model):
    """ClearanceType model - kind of certificate a resident can request."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, default="")
    fee = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(0)]
    )
    processing_days = models.PositiveIntegerField(default=3)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "clearance_types"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(fee__gte=0), name="clearance_fee_non_negative"
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.fee})"


class ClearanceRequestQuerySet(models.QuerySet):
    """Store-level selectors used by the workflow and its read endpoints."""

    def for_resident(self, resident_id):
        return self.filter(resident_id=resident_id).order_by("-request_date")

    def with_status(self, status):
        return self.filter(status=status).order_by("-request_date")

    def awaiting_review(self):
        # Oldest first: this is the processing queue
        return self.filter(status__in=AWAITING_REVIEW_STATUSES).order_by(
            "request_date"
        )

    def expired(self, now):
        return self.filter(status=RequestStatus.RELEASED, expiry_date__lt=now)

    def get_by_reference(self, reference_number):
        return self.filter(reference_number=reference_number).first()


class ClearanceRequest(models.Model):
    """ClearanceRequest model - one resident application tracked through its lifecycle."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reference_number = models.CharField(max_length=32, unique=True)
    resident = models.ForeignKey(
        "residents.Resident", on_delete=models.PROTECT, related_name="clearance_requests"
    )
    clearance_type = models.ForeignKey(
        ClearanceType, on_delete=models.PROTECT, related_name="requests"
    )
    purpose = models.TextField()
    status = models.CharField(
        max_length=20, choices=RequestStatus.choices, default=RequestStatus.SUBMITTED
    )
    request_date = models.DateTimeField()

    # Set on approve/reject
    processed_by = models.ForeignKey(
        "users.User",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="processed_clearances",
    )
    processed_date = models.DateTimeField(null=True, blank=True)
    remarks = models.TextField(null=True, blank=True)

    # Set on payment (cash collection only)
    is_paid = models.BooleanField(default=False)
    paid_date = models.DateTimeField(null=True, blank=True)
    collected_by = models.ForeignKey(
        "users.User",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="collected_clearances",
    )
    amount_paid = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    official_receipt_number = models.CharField(max_length=50, null=True, blank=True)

    # Set on release
    released_date = models.DateTimeField(null=True, blank=True)
    released_by = models.ForeignKey(
        "users.User",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="released_clearances",
    )
    expiry_date = models.DateTimeField(null=True, blank=True)

    # Set on cancel
    cancelled_by = models.ForeignKey(
        "users.User",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="cancelled_clearances",
    )
    cancelled_date = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(null=True, blank=True)

    # Set by document issuance
    document_path = models.CharField(max_length=512, null=True, blank=True)
    document_generated_date = models.DateTimeField(null=True, blank=True)
    document_generated_by = models.ForeignKey(
        "users.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="generated_clearance_documents",
    )
    document_error = models.TextField(null=True, blank=True)

    # Optimistic lock, incremented by every status transition
    version = models.IntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ClearanceRequestQuerySet.as_manager()

    class Meta:
        db_table = "clearance_requests"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(status__in=RequestStatus.values),
                name="valid_clearance_status",
            ),
            # is_paid implies the request reached FOR_RELEASE
            models.CheckConstraint(
                condition=models.Q(is_paid=False)
                | models.Q(status__in=PAID_STATUSES),
                name="paid_only_after_approval",
            ),
            # expiry_date NOT NULL iff status IN ('RELEASED', 'EXPIRED')
            models.CheckConstraint(
                condition=(
                    models.Q(status__in=VALIDITY_STATUSES)
                    & models.Q(expiry_date__isnull=False)
                )
                | (
                    ~models.Q(status__in=VALIDITY_STATUSES)
                    & models.Q(expiry_date__isnull=True)
                ),
                name="expiry_set_iff_released",
            ),
            models.CheckConstraint(
                condition=models.Q(processed_date__isnull=True)
                | models.Q(cancelled_date__isnull=True),
                name="processed_or_cancelled_exclusive",
            ),
            models.CheckConstraint(
                condition=models.Q(version__gte=1), name="clearance_version_positive"
            ),
        ]
        indexes = [
            models.Index(fields=["status"], name="idx_clearance_status"),
            models.Index(fields=["resident"], name="idx_clearance_resident"),
            models.Index(
                fields=["status", "expiry_date"], name="idx_clearance_status_expiry"
            ),
            models.Index(fields=["request_date"], name="idx_clearance_request_date"),
        ]

    def __str__(self):
        return f"{self.reference_number} ({self.status})"

    def delete(self, *args, **kwargs):
        raise ValueError(
            "Clearance requests are retained for audit and history. "
            "Deletions are not allowed."
        )
