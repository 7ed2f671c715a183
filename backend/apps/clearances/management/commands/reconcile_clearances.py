"""
Reconciliation management command.

Verifies clearance lifecycle invariants and detects drift.
Run: python manage.py reconcile_clearances
"""

from dateutil.relativedelta import relativedelta
from django.core.management.base import BaseCommand, CommandError
from django.db.models import Q
from django.utils import timezone

from apps.audit.models import AuditLog
from apps.clearances.conf import clearance_setting
from apps.clearances.models import ClearanceRequest, RequestStatus

# Audit action that must exist for a request currently in each status
STATUS_AUDIT_ACTIONS = {
    RequestStatus.SUBMITTED: "REQUEST_CREATED",
    RequestStatus.APPROVED: "REQUEST_APPROVED",
    RequestStatus.REJECTED: "REQUEST_REJECTED",
    RequestStatus.CANCELLED: "REQUEST_CANCELLED",
    RequestStatus.FOR_RELEASE: "PAYMENT_RECORDED",
    RequestStatus.RELEASED: "REQUEST_RELEASED",
    RequestStatus.EXPIRED: "REQUEST_EXPIRED",
}


class Command(BaseCommand):
    help = "Reconcile clearance requests and verify lifecycle invariants"

    def add_arguments(self, parser):
        parser.add_argument(
            "--sample",
            type=int,
            default=500,
            help="Maximum requests checked for audit completeness",
        )

    def handle(self, *args, **options):
        self.stdout.write("Starting clearance reconciliation...")

        errors = []
        warnings = []
        now = timezone.now()

        # Check 1: payment facts
        self.stdout.write("\n[1] Checking payment fields...")
        bad_payments = ClearanceRequest.objects.filter(is_paid=True).filter(
            Q(paid_date__isnull=True) | Q(collected_by__isnull=True)
        )
        if bad_payments.exists():
            errors.append(
                f"Found {bad_payments.count()} paid requests missing "
                "paid_date or collector"
            )
        else:
            self.stdout.write(self.style.SUCCESS("  ✓ Payment fields consistent"))

        # Check 2: validity period
        self.stdout.write("\n[2] Checking validity periods...")
        months = int(clearance_setting("VALIDITY_MONTHS"))
        drifted = [
            request.reference_number
            for request in ClearanceRequest.objects.filter(
                status__in=[RequestStatus.RELEASED, RequestStatus.EXPIRED],
                released_date__isnull=False,
            ).only("reference_number", "released_date", "expiry_date")
            if request.expiry_date
            != request.released_date + relativedelta(months=months)
        ]
        if drifted:
            warnings.append(
                f"{len(drifted)} requests have an expiry_date that is not "
                f"released_date + {months} months (e.g. {drifted[0]})"
            )
        else:
            self.stdout.write(self.style.SUCCESS("  ✓ Expiry dates match validity"))

        # Check 3: overdue releases the sweep has not reached
        self.stdout.write("\n[3] Checking overdue releases...")
        overdue = ClearanceRequest.objects.expired(now).count()
        if overdue:
            warnings.append(
                f"{overdue} released requests are past expiry; "
                "run expire_clearances"
            )
        else:
            self.stdout.write(self.style.SUCCESS("  ✓ No overdue releases"))

        # Check 4: released without a document
        self.stdout.write("\n[4] Checking issued documents...")
        undocumented = ClearanceRequest.objects.filter(
            status=RequestStatus.RELEASED, document_path__isnull=True
        )
        if undocumented.exists():
            warnings.append(
                f"{undocumented.count()} released requests have no document; "
                "regenerate them"
            )
            for request in undocumented[:10]:
                self.stdout.write(
                    self.style.WARNING(
                        f"  {request.reference_number}: "
                        f"{request.document_error or 'not issued yet'}"
                    )
                )
        else:
            self.stdout.write(self.style.SUCCESS("  ✓ All released requests issued"))

        # Check 5: audit completeness
        self.stdout.write("\n[5] Checking audit log completeness...")
        missing_audit = 0
        sample = ClearanceRequest.objects.exclude(
            status=RequestStatus.PENDING
        ).order_by("-updated_at")[: options["sample"]]
        for request in sample:
            has_audit = AuditLog.objects.filter(
                entity_type="ClearanceRequest",
                entity_id=request.id,
                action=STATUS_AUDIT_ACTIONS[request.status],
            ).exists()
            if not has_audit:
                missing_audit += 1
        if missing_audit:
            warnings.append(
                f"{missing_audit} requests have no audit entry for their "
                "current status"
            )
        else:
            self.stdout.write(self.style.SUCCESS("  ✓ Audit logs present"))

        # Summary
        self.stdout.write("\n" + "=" * 50)
        if warnings:
            self.stdout.write(self.style.WARNING(f"\nWARNINGS: {len(warnings)}"))
            for warning in warnings[:10]:
                self.stdout.write(self.style.WARNING(f"  - {warning}"))
        if errors:
            for error in errors:
                self.stdout.write(self.style.ERROR(f"  - {error}"))
            raise CommandError(f"Reconciliation failed with {len(errors)} error(s)")

        self.stdout.write(self.style.SUCCESS("\nRECONCILIATION PASSED"))
