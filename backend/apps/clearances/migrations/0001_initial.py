# ClearanceType and ClearanceRequest.
# Requests are never deleted; status transitions are version-locked.

import uuid
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion

STATUS_CHOICES = [
    ("SUBMITTED", "Submitted"),
    ("PENDING", "Pending"),
    ("APPROVED", "Approved"),
    ("REJECTED", "Rejected"),
    ("CANCELLED", "Cancelled"),
    ("FOR_RELEASE", "For Release"),
    ("RELEASED", "Released"),
    ("EXPIRED", "Expired"),
]


def _user_fk(related_name, on_delete=django.db.models.deletion.PROTECT):
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=on_delete,
        related_name=related_name,
        to=settings.AUTH_USER_MODEL,
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("residents", "0001_initial"),
        ("users", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ClearanceType",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=100, unique=True)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "fee",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[
                            django.core.validators.MinValueValidator(0)
                        ],
                    ),
                ),
                ("processing_days", models.PositiveIntegerField(default=3)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "clearance_types",
                "ordering": ["name"],
            },
        ),
        migrations.AddConstraint(
            model_name="clearancetype",
            constraint=models.CheckConstraint(
                condition=models.Q(fee__gte=0), name="clearance_fee_non_negative"
            ),
        ),
        migrations.CreateModel(
            name="ClearanceRequest",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("reference_number", models.CharField(max_length=32, unique=True)),
                ("purpose", models.TextField()),
                (
                    "status",
                    models.CharField(
                        choices=STATUS_CHOICES, default="SUBMITTED", max_length=20
                    ),
                ),
                ("request_date", models.DateTimeField()),
                ("processed_date", models.DateTimeField(blank=True, null=True)),
                ("remarks", models.TextField(blank=True, null=True)),
                ("is_paid", models.BooleanField(default=False)),
                ("paid_date", models.DateTimeField(blank=True, null=True)),
                (
                    "amount_paid",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                (
                    "official_receipt_number",
                    models.CharField(blank=True, max_length=50, null=True),
                ),
                ("released_date", models.DateTimeField(blank=True, null=True)),
                ("expiry_date", models.DateTimeField(blank=True, null=True)),
                ("cancelled_date", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.TextField(blank=True, null=True)),
                (
                    "document_path",
                    models.CharField(blank=True, max_length=512, null=True),
                ),
                (
                    "document_generated_date",
                    models.DateTimeField(blank=True, null=True),
                ),
                ("document_error", models.TextField(blank=True, null=True)),
                ("version", models.IntegerField(default=1)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "resident",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="clearance_requests",
                        to="residents.resident",
                    ),
                ),
                (
                    "clearance_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="requests",
                        to="clearances.clearancetype",
                    ),
                ),
                ("processed_by", _user_fk("processed_clearances")),
                ("collected_by", _user_fk("collected_clearances")),
                ("released_by", _user_fk("released_clearances")),
                ("cancelled_by", _user_fk("cancelled_clearances")),
                (
                    "document_generated_by",
                    _user_fk(
                        "generated_clearance_documents",
                        on_delete=django.db.models.deletion.SET_NULL,
                    ),
                ),
            ],
            options={
                "db_table": "clearance_requests",
            },
        ),
        migrations.AddConstraint(
            model_name="clearancerequest",
            constraint=models.CheckConstraint(
                condition=models.Q(
                    status__in=[value for value, _ in STATUS_CHOICES]
                ),
                name="valid_clearance_status",
            ),
        ),
        migrations.AddConstraint(
            model_name="clearancerequest",
            constraint=models.CheckConstraint(
                condition=models.Q(is_paid=False)
                | models.Q(status__in=["FOR_RELEASE", "RELEASED", "EXPIRED"]),
                name="paid_only_after_approval",
            ),
        ),
        migrations.AddConstraint(
            model_name="clearancerequest",
            constraint=models.CheckConstraint(
                condition=(
                    models.Q(status__in=["RELEASED", "EXPIRED"])
                    & models.Q(expiry_date__isnull=False)
                )
                | (
                    ~models.Q(status__in=["RELEASED", "EXPIRED"])
                    & models.Q(expiry_date__isnull=True)
                ),
                name="expiry_set_iff_released",
            ),
        ),
        migrations.AddConstraint(
            model_name="clearancerequest",
            constraint=models.CheckConstraint(
                condition=models.Q(processed_date__isnull=True)
                | models.Q(cancelled_date__isnull=True),
                name="processed_or_cancelled_exclusive",
            ),
        ),
        migrations.AddConstraint(
            model_name="clearancerequest",
            constraint=models.CheckConstraint(
                condition=models.Q(version__gte=1), name="clearance_version_positive"
            ),
        ),
        migrations.AddIndex(
            model_name="clearancerequest",
            index=models.Index(fields=["status"], name="idx_clearance_status"),
        ),
        migrations.AddIndex(
            model_name="clearancerequest",
            index=models.Index(fields=["resident"], name="idx_clearance_resident"),
        ),
        migrations.AddIndex(
            model_name="clearancerequest",
            index=models.Index(
                fields=["status", "expiry_date"], name="idx_clearance_status_expiry"
            ),
        ),
        migrations.AddIndex(
            model_name="clearancerequest",
            index=models.Index(
                fields=["request_date"], name="idx_clearance_request_date"
            ),
        ),
    ]
