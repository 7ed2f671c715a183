"""
Expiry sweep tests: only overdue RELEASED requests move, and a second run
changes nothing.
"""

from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from apps.audit.models import AuditLog
from apps.clearances import services
from apps.clearances.models import ClearanceRequest, RequestStatus
from apps.clearances.tests.support import (
    clearance_settings,
    make_clearance_type,
    make_resident,
    make_user,
)


@override_settings(CLEARANCE_SETTINGS=clearance_settings())
class ExpirySweepTests(TestCase):
    def setUp(self):
        self.resident_user, self.resident = make_resident("exp_resident")
        self.staff = make_user("exp_staff", role="STAFF")
        self.clearance_type = make_clearance_type("Expiry Clearance")

    def released(self, expires_in):
        request = services.create_request(
            self.resident.id, self.clearance_type.id, "Travel"
        )
        services.process_request(request.id, True, None, self.staff.id)
        services.record_payment(request.id, self.staff.id)
        services.mark_released(request.id, self.staff.id)
        ClearanceRequest.objects.filter(id=request.id).update(
            expiry_date=timezone.now() + expires_in
        )
        return request

    def test_only_overdue_released_requests_expire(self):
        overdue = self.released(timedelta(days=-1))
        valid = self.released(timedelta(days=30))
        pending = services.create_request(
            self.resident.id, self.clearance_type.id, "Loan"
        )

        self.assertEqual(services.mark_expired(), 1)

        self.assertEqual(
            ClearanceRequest.objects.get(id=overdue.id).status, RequestStatus.EXPIRED
        )
        self.assertEqual(
            ClearanceRequest.objects.get(id=valid.id).status, RequestStatus.RELEASED
        )
        self.assertEqual(
            ClearanceRequest.objects.get(id=pending.id).status,
            RequestStatus.SUBMITTED,
        )

        entry = AuditLog.objects.get(entity_id=overdue.id, action="REQUEST_EXPIRED")
        self.assertIsNone(entry.actor_id)

    def test_sweep_is_idempotent(self):
        request = self.released(timedelta(minutes=-5))
        now = timezone.now()

        self.assertEqual(services.mark_expired(now=now), 1)
        snapshot = ClearanceRequest.objects.get(id=request.id)
        audit_total = AuditLog.objects.count()

        self.assertEqual(services.mark_expired(now=now), 0)
        again = ClearanceRequest.objects.get(id=request.id)
        self.assertEqual(again.version, snapshot.version)
        self.assertEqual(again.updated_at, snapshot.updated_at)
        self.assertEqual(AuditLog.objects.count(), audit_total)

    def test_expiry_boundary_is_strict(self):
        request = self.released(timedelta(days=1))
        expiry = ClearanceRequest.objects.get(id=request.id).expiry_date
        self.assertEqual(services.mark_expired(now=expiry), 0)
        self.assertEqual(services.mark_expired(now=expiry + timedelta(seconds=1)), 1)

    def test_expired_keeps_expiry_date(self):
        request = self.released(timedelta(days=-2))
        services.mark_expired()
        request.refresh_from_db()
        self.assertEqual(request.status, RequestStatus.EXPIRED)
        self.assertIsNotNone(request.expiry_date)

    def test_command(self):
        self.released(timedelta(days=-1))
        out = StringIO()
        call_command("expire_clearances", stdout=out)
        self.assertIn("Expired 1 clearance(s)", out.getvalue())

        out = StringIO()
        call_command("expire_clearances", stdout=out)
        self.assertIn("No clearances to expire", out.getvalue())


@override_settings(CLEARANCE_SETTINGS=clearance_settings())
class ReconcileCommandTests(TestCase):
    def test_reconcile_reports_overdue_and_undocumented(self):
        _, resident = make_resident("rec_resident")
        staff = make_user("rec_staff", role="STAFF")
        clearance_type = make_clearance_type("Reconcile Clearance")
        request = services.create_request(resident.id, clearance_type.id, "Travel")
        services.process_request(request.id, True, None, staff.id)
        services.record_payment(request.id, staff.id)
        services.mark_released(request.id, staff.id)
        ClearanceRequest.objects.filter(id=request.id).update(
            expiry_date=timezone.now() - timedelta(days=1)
        )

        out = StringIO()
        call_command("reconcile_clearances", stdout=out)
        output = out.getvalue()

        self.assertIn("run expire_clearances", output)
        self.assertIn("have no document", output)
        self.assertIn("RECONCILIATION PASSED", output)

    def test_seed_command_is_idempotent(self):
        out = StringIO()
        call_command("seed_clearance_types", stdout=out)
        self.assertIn("Created 0 clearance type(s)", out.getvalue())
