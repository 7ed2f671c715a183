"""
Document issuance tests: PDF rendering, timeout handling, and recording of
the outcome on the request row.
"""

import threading
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from django.core.files.storage import InMemoryStorage
from django.test import SimpleTestCase, TestCase, override_settings

from apps.clearances import documents, services
from apps.clearances.documents import (
    ClearanceDocument,
    DocumentIssuanceError,
    DocumentIssuer,
    PdfDocumentIssuer,
    build_document,
    get_document_issuer,
    issue_document,
    run_issuer,
)
from apps.clearances.models import ClearanceRequest
from apps.clearances.tests.support import (
    RecordingIssuer,
    clearance_settings,
    make_clearance_type,
    make_resident,
    make_user,
)


def _document(**overrides):
    values = {
        "request_id": "00000000-0000-0000-0000-000000000001",
        "reference_number": "CLR-20240115-AB12CD34",
        "resident_name": "Juan Dela Cruz",
        "age": 33,
        "address": "Purok 3 & 4, Poblacion",
        "clearance_type": "Barangay Clearance",
        "purpose": "Employment <abroad>",
        "fee": Decimal("50.00"),
        "official_receipt_number": "OR-77",
        "issue_date": datetime(2024, 1, 15, tzinfo=dt_timezone.utc),
        "expiry_date": datetime(2024, 7, 15, tzinfo=dt_timezone.utc),
        "issued_by": "Hon. Maria Santos",
        "issuing_office": "Barangay Poblacion",
    }
    values.update(overrides)
    return ClearanceDocument(**values)


class _BlockingIssuer(DocumentIssuer):
    def __init__(self):
        self.release = threading.Event()

    def issue(self, document):
        self.release.wait(5)
        return "never-used.pdf"


class _EmptyIssuer(DocumentIssuer):
    def issue(self, document):
        return ""


class PdfDocumentIssuerTests(SimpleTestCase):
    def test_render_produces_pdf(self):
        content = PdfDocumentIssuer(storage=InMemoryStorage()).render(_document())
        self.assertTrue(content.startswith(b"%PDF"))

    def test_issue_saves_under_folder(self):
        storage = InMemoryStorage()
        issuer = PdfDocumentIssuer(storage=storage, folder="clearances")

        path = issuer.issue(_document(expiry_date=None, issued_by=""))

        self.assertTrue(path.startswith("clearances/Clearance_CLR-20240115-AB12CD34_"))
        self.assertTrue(path.endswith(".pdf"))
        self.assertTrue(storage.exists(path))
        with storage.open(path, "rb") as handle:
            self.assertEqual(handle.read(4), b"%PDF")

        issuer.delete(path)
        self.assertFalse(storage.exists(path))


class RunIssuerTests(SimpleTestCase):
    def test_timeout_becomes_issuance_error(self):
        issuer = _BlockingIssuer()
        try:
            with self.assertRaises(DocumentIssuanceError) as ctx:
                run_issuer(_document(), issuer=issuer, timeout=0.05)
            self.assertIn("timed out", str(ctx.exception))
        finally:
            issuer.release.set()

    def test_hung_issuers_do_not_starve_later_issuance(self):
        RecordingIssuer.reset()
        hung = [_BlockingIssuer() for _ in range(3)]
        try:
            for issuer in hung:
                with self.assertRaises(DocumentIssuanceError):
                    run_issuer(_document(), issuer=issuer, timeout=0.05)

            path = run_issuer(_document(), issuer=RecordingIssuer(), timeout=2)
            self.assertEqual(path, "clearances/CLR-20240115-AB12CD34-1.pdf")
        finally:
            for issuer in hung:
                issuer.release.set()
            RecordingIssuer.reset()

    def test_empty_reference_is_failure(self):
        with self.assertRaises(DocumentIssuanceError):
            run_issuer(_document(), issuer=_EmptyIssuer(), timeout=1)

    def test_issuer_exception_is_wrapped(self):
        from apps.clearances.tests.support import FailingIssuer

        with self.assertRaises(DocumentIssuanceError) as ctx:
            run_issuer(_document(), issuer=FailingIssuer(), timeout=1)
        self.assertIsInstance(ctx.exception.__cause__, OSError)

    @override_settings(CLEARANCE_SETTINGS=clearance_settings())
    def test_issuer_is_configurable(self):
        self.assertIsInstance(get_document_issuer(), RecordingIssuer)

    @override_settings(CLEARANCE_SETTINGS={})
    def test_default_issuer_is_pdf(self):
        self.assertIsInstance(get_document_issuer(), PdfDocumentIssuer)


@override_settings(CLEARANCE_SETTINGS=clearance_settings())
class IssueDocumentTests(TestCase):
    def setUp(self):
        RecordingIssuer.reset()
        _, self.resident = make_resident("doc_resident")
        self.staff = make_user("doc_staff", role="STAFF")
        self.clearance_type = make_clearance_type("Document Clearance", fee="0.00")
        self.request = services.create_request(
            self.resident.id, self.clearance_type.id, "Scholarship"
        )

    def test_skips_unreleased_request(self):
        with self.assertLogs("apps.clearances.documents", level="WARNING"):
            self.assertIsNone(issue_document(self.request.id))
        self.assertEqual(RecordingIssuer.issued, [])

    def test_records_path_for_released_request(self):
        services.process_request(self.request.id, True, None, self.staff.id)
        services.record_payment(self.request.id, self.staff.id, "OR-9")
        services.mark_released(self.request.id, self.staff.id)
        ClearanceRequest.objects.filter(id=self.request.id).update(
            document_error="previous failure"
        )

        path = issue_document(self.request.id)

        self.request.refresh_from_db()
        self.assertEqual(self.request.document_path, path)
        self.assertIsNone(self.request.document_error)
        self.assertIsNone(self.request.document_generated_by_id)
        snapshot = RecordingIssuer.issued[0]
        self.assertEqual(snapshot.resident_name, "Juan Dela Cruz")
        self.assertEqual(snapshot.official_receipt_number, "OR-9")
        self.assertEqual(snapshot.expiry_date, self.request.expiry_date)

    def test_build_document_uses_age_on_release(self):
        services.process_request(self.request.id, True, None, self.staff.id)
        services.record_payment(self.request.id, self.staff.id)
        services.mark_released(self.request.id, self.staff.id)
        request = services.get_request(self.request.id)

        document = build_document(request)

        self.assertEqual(
            document.age, self.resident.age_on(request.released_date.date())
        )
        self.assertEqual(document.purpose, "Scholarship")
        self.assertEqual(document.fee, Decimal("0.00"))

    def test_dispatch_waits_for_commit(self):
        services.process_request(self.request.id, True, None, self.staff.id)
        services.record_payment(self.request.id, self.staff.id)
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            services.mark_released(self.request.id, self.staff.id)
        self.assertEqual(len(callbacks), 1)
        self.assertEqual(RecordingIssuer.issued, [])
        self.assertIs(documents.issue_document, callbacks[0].func)
