"""
Version lock tests.

A stale writer must never overwrite a transition made by someone else.
"""

from django.test import TestCase, override_settings
from unittest import mock

from apps.audit.models import AuditLog
from apps.clearances import services
from apps.clearances.models import ClearanceRequest, RequestStatus
from apps.clearances.tests.support import (
    clearance_settings,
    make_clearance_type,
    make_resident,
    make_user,
)
from apps.clearances.versioning import (
    ConcurrentModificationError,
    version_locked_update,
)
from core.exceptions import InvalidStateError


@override_settings(CLEARANCE_SETTINGS=clearance_settings())
class VersionLockTests(TestCase):
    def setUp(self):
        self.resident_user, self.resident = make_resident("vl_resident")
        self.staff = make_user("vl_staff", role="STAFF")
        self.clearance_type = make_clearance_type("Version Clearance")
        self.request = services.create_request(
            self.resident.id, self.clearance_type.id, "Travel"
        )

    def test_update_bumps_version(self):
        queryset = ClearanceRequest.objects.filter(id=self.request.id)
        self.assertEqual(version_locked_update(queryset, 1, remarks="x"), 1)
        self.assertEqual(ClearanceRequest.objects.get(id=self.request.id).version, 2)

    def test_stale_version_rejected(self):
        queryset = ClearanceRequest.objects.filter(id=self.request.id)
        version_locked_update(queryset, 1, remarks="first")
        with self.assertRaises(ConcurrentModificationError) as ctx:
            version_locked_update(queryset, 1, remarks="second")
        self.assertIsInstance(ctx.exception, InvalidStateError)
        self.assertEqual(ctx.exception.details, {"expected_version": 1})
        self.assertEqual(
            ClearanceRequest.objects.get(id=self.request.id).remarks, "first"
        )

    def _simulate_concurrent_cancel(self):
        """Make the locked read see the pre-cancel row, as a racing writer would."""
        stale = ClearanceRequest.objects.get(id=self.request.id)
        self.assertTrue(
            services.cancel_request(self.request.id, self.resident_user.id, "race")
        )
        return mock.patch.object(services, "_locked", return_value=stale)

    def test_stale_process_raises_and_writes_nothing(self):
        with self._simulate_concurrent_cancel():
            with self.assertRaises(InvalidStateError):
                services.process_request(self.request.id, True, None, self.staff.id)

        request = ClearanceRequest.objects.get(id=self.request.id)
        self.assertEqual(request.status, RequestStatus.CANCELLED)
        self.assertIsNone(request.processed_date)
        self.assertFalse(
            AuditLog.objects.filter(
                entity_id=self.request.id, action="REQUEST_APPROVED"
            ).exists()
        )

    def test_stale_soft_operation_returns_false(self):
        services.process_request(self.request.id, True, None, self.staff.id)
        stale = ClearanceRequest.objects.get(id=self.request.id)
        self.assertTrue(services.record_payment(self.request.id, self.staff.id))

        with mock.patch.object(services, "_locked", return_value=stale):
            with self.assertLogs("apps.clearances.services", level="WARNING") as cm:
                self.assertFalse(services.record_payment(self.request.id, self.staff.id))

        self.assertEqual(cm.records[0].reason, services.CONCURRENT_MODIFICATION)
        self.assertEqual(
            AuditLog.objects.filter(
                entity_id=self.request.id, action="PAYMENT_RECORDED"
            ).count(),
            1,
        )
