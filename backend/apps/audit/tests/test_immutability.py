"""
AuditLog rows are append-only: no update or delete path exists.
"""

import uuid

from django.test import TestCase

from apps.audit.models import AuditLog
from apps.users.models import User


class AuditLogImmutabilityTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            username="audit_test_user",
            password="password123",
            display_name="Audit Test User",
            role="STAFF",
        )

        self.log = AuditLog.objects.create(
            action="TEST_EVENT",
            actor=self.user,
            entity_type="ClearanceRequest",
            entity_id=uuid.uuid4(),
            request_id="test-request-id",
        )

    def test_bulk_update_is_blocked(self):
        with self.assertRaises(ValueError):
            AuditLog.objects.filter(pk=self.log.pk).update(action="MODIFIED")

    def test_bulk_delete_is_blocked(self):
        with self.assertRaises(ValueError):
            AuditLog.objects.filter(pk=self.log.pk).delete()

    def test_instance_save_after_create_is_blocked(self):
        self.log.action = "MODIFIED"
        with self.assertRaises(ValueError):
            self.log.save()
        self.assertEqual(AuditLog.objects.get(pk=self.log.pk).action, "TEST_EVENT")

    def test_instance_delete_is_blocked(self):
        with self.assertRaises(ValueError):
            self.log.delete()
        self.assertTrue(AuditLog.objects.filter(pk=self.log.pk).exists())

    def test_occurred_at_is_set(self):
        self.assertIsNotNone(self.log.occurred_at)
