"""Shared fixtures for clearance tests."""

from datetime import date
from decimal import Decimal

from apps.clearances.documents import DocumentIssuer
from apps.clearances.models import ClearanceType
from apps.residents.models import Resident
from apps.users.models import User


class RecordingIssuer(DocumentIssuer):
    """Records issued documents and deleted paths; never touches storage."""

    issued = []
    deleted = []

    @classmethod
    def reset(cls):
        cls.issued = []
        cls.deleted = []

    def issue(self, document):
        self.issued.append(document)
        return f"clearances/{document.reference_number}-{len(self.issued)}.pdf"

    def delete(self, path):
        self.deleted.append(path)


class FailingIssuer(DocumentIssuer):
    """Issuer whose storage backend is down."""

    def issue(self, document):
        raise OSError("storage unavailable")

    def delete(self, path):
        raise OSError("storage unavailable")


def clearance_settings(issuer="apps.clearances.tests.support.RecordingIssuer", **extra):
    return {"DOCUMENT_ISSUER": issuer, "DOCUMENT_TIMEOUT_SECONDS": 5, **extra}


def make_user(username, role="RESIDENT"):
    return User.objects.create_user(
        username=username,
        password="testpass123",
        display_name=username.replace("_", " ").title(),
        role=role,
    )


def make_resident(username, first_name="Juan", last_name="Dela Cruz"):
    user = make_user(username, role="RESIDENT")
    resident = Resident.objects.create(
        user=user,
        first_name=first_name,
        last_name=last_name,
        address="Purok 3, Poblacion",
        birth_date=date(1990, 5, 17),
    )
    return user, resident


def make_clearance_type(name="Test Clearance", fee="50.00", is_active=True):
    return ClearanceType.objects.create(
        name=name,
        description="Used by tests",
        fee=Decimal(fee),
        processing_days=3,
        is_active=is_active,
    )
