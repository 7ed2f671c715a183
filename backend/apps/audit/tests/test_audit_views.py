"""
Audit API tests: ADMIN-only access, filters, and paging envelope.
"""

import uuid

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.users.models import User


class AuditViewTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            username="audit_admin",
            password="testpass123",
            display_name="Audit Admin",
            role="ADMIN",
        )
        self.staff = User.objects.create_user(
            username="audit_staff",
            password="testpass123",
            display_name="Audit Staff",
            role="STAFF",
        )
        self.entity_id = uuid.uuid4()
        for action in ("REQUEST_CREATED", "REQUEST_APPROVED", "PAYMENT_RECORDED"):
            AuditLog.objects.create(
                action=action,
                actor=self.staff,
                entity_type="ClearanceRequest",
                entity_id=self.entity_id,
                new_state={"password": "[REDACTED]"},
            )
        self.client.force_authenticate(self.admin)

    def test_list_envelope(self):
        response = self.client.get(reverse("audit:query-audit-log"), {"pageSize": 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["count"], 3)
        self.assertEqual(body["pageSize"], 2)
        self.assertEqual(body["totalPages"], 2)
        self.assertEqual(len(body["results"]), 2)
        self.assertEqual(body["results"][0]["action"], "PAYMENT_RECORDED")
        self.assertEqual(body["results"][0]["actorName"], "Audit Staff")

    def test_page_size_clamped(self):
        response = self.client.get(reverse("audit:query-audit-log"), {"pageSize": 0})
        self.assertEqual(response.json()["pageSize"], 10)
        response = self.client.get(
            reverse("audit:query-audit-log"), {"pageSize": 1000, "page": -3}
        )
        self.assertEqual(response.json()["pageSize"], 100)
        self.assertEqual(response.json()["page"], 1)

    def test_filters(self):
        response = self.client.get(
            reverse("audit:query-audit-log"),
            {"action": "REQUEST", "actorId": str(self.staff.id)},
        )
        self.assertEqual(response.json()["count"], 2)

    def test_bad_filters_are_400(self):
        url = reverse("audit:query-audit-log")
        for params in (
            {"actorId": "nope"},
            {"fromDate": "yesterday"},
            {"entityType": "Payment"},
            {"page": "two"},
        ):
            response = self.client.get(url, params)
            self.assertEqual(response.status_code, 400, params)
            self.assertEqual(response.json()["error"]["code"], "VALIDATION_ERROR")

    def test_date_filter_accepts_bare_dates(self):
        day = AuditLog.objects.first().occurred_at.date().isoformat()
        response = self.client.get(
            reverse("audit:query-audit-log"), {"fromDate": day, "toDate": day}
        )
        self.assertEqual(response.json()["count"], 3)

    def test_entity_history(self):
        url = reverse(
            "audit:entity-audit-history",
            kwargs={"entityType": "ClearanceRequest", "entityId": str(self.entity_id)},
        )
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.json()["results"]), 3)

    def test_recent(self):
        response = self.client.get(reverse("audit:recent-audit-log"), {"count": 1})
        self.assertEqual(len(response.json()["results"]), 1)

    def test_staff_forbidden(self):
        self.client.force_authenticate(self.staff)
        response = self.client.get(reverse("audit:query-audit-log"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()["error"]["code"], "FORBIDDEN")
