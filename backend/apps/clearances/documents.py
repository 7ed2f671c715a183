"""
Clearance document issuance.

The workflow only triggers issuance and records the resulting artifact
reference. Rendering and storage live behind DocumentIssuer so deployments
can swap the PDF implementation through CLEARANCE_SETTINGS["DOCUMENT_ISSUER"].

Issuance runs after the release transaction commits, on its own daemon thread
with a timeout, so a hung issuer only ever holds its own thread. A failed or
timed-out issuance leaves the request RELEASED with no document_path; the
error is stored on the row and logged so staff can regenerate it.
"""

import io
import logging
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeout
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from functools import partial
from typing import Optional
from xml.sax.saxutils import escape

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.db import transaction
from django.utils import timezone
from django.utils.module_loading import import_string

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from apps.clearances.conf import clearance_setting
from apps.clearances.models import ClearanceRequest, RequestStatus

logger = logging.getLogger(__name__)


class DocumentIssuanceError(Exception):
    """The issuer failed or did not finish in time."""


@dataclass(frozen=True)
class ClearanceDocument:
    """Immutable snapshot of everything printed on a clearance."""

    request_id: str
    reference_number: str
    resident_name: str
    age: Optional[int]
    address: str
    clearance_type: str
    purpose: str
    fee: Decimal
    official_receipt_number: Optional[str]
    issue_date: datetime
    expiry_date: Optional[datetime]
    issued_by: str
    issuing_office: str


def build_document(request):
    resident = request.resident
    issue_date = request.released_date or timezone.now()
    return ClearanceDocument(
        request_id=str(request.id),
        reference_number=request.reference_number,
        resident_name=resident.full_name,
        age=resident.age_on(issue_date.date()),
        address=resident.address,
        clearance_type=request.clearance_type.name,
        purpose=request.purpose or "General purposes",
        fee=request.clearance_type.fee,
        official_receipt_number=request.official_receipt_number,
        issue_date=issue_date,
        expiry_date=request.expiry_date,
        issued_by=clearance_setting("PUNONG_BARANGAY"),
        issuing_office=clearance_setting("ISSUING_OFFICE"),
    )


class DocumentIssuer:
    """Produces a document artifact and returns its storage reference."""

    def issue(self, document):
        raise NotImplementedError

    def delete(self, path):
        raise NotImplementedError


class PdfDocumentIssuer(DocumentIssuer):
    """Renders a one-page PDF with reportlab and saves it to Django storage."""

    def __init__(self, storage=None, folder=None):
        self.storage = storage or default_storage
        self.folder = folder or clearance_setting("DOCUMENT_FOLDER")

    def filename(self, document):
        safe_ref = "".join(
            ch for ch in document.reference_number if ch.isalnum() or ch in "-_"
        )
        stamp = timezone.now().strftime("%Y%m%d%H%M%S")
        return f"{self.folder}/Clearance_{safe_ref or 'Unknown'}_{stamp}.pdf"

    def render(self, document):
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            rightMargin=inch,
            leftMargin=inch,
            topMargin=inch,
            bottomMargin=inch,
        )

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "ClearanceTitle",
            parent=styles["Heading1"],
            fontSize=16,
            alignment=TA_CENTER,
            spaceAfter=12,
        )
        centered = ParagraphStyle(
            "Centered", parent=styles["Normal"], alignment=TA_CENTER
        )

        story = [
            Paragraph("Republic of the Philippines", centered),
            Paragraph(escape(document.issuing_office), centered),
            Spacer(1, 18),
            Paragraph(document.clearance_type.upper(), title_style),
            Spacer(1, 12),
            Paragraph("TO WHOM IT MAY CONCERN:", styles["Normal"]),
            Spacer(1, 6),
            Paragraph(
                f"This is to certify that <b>{escape(document.resident_name)}</b>"
                + (f", {document.age} years old" if document.age is not None else "")
                + f", a resident of {escape(document.address)}, has no derogatory record "
                "on file in this office.",
                styles["Normal"],
            ),
            Spacer(1, 6),
            Paragraph(
                f"This certification is issued upon request for "
                f"<b>{escape(document.purpose)}</b>.",
                styles["Normal"],
            ),
            Spacer(1, 18),
        ]

        rows = [
            ["Reference Number", document.reference_number],
            ["Date Issued", document.issue_date.strftime("%Y-%m-%d")],
            [
                "Valid Until",
                document.expiry_date.strftime("%Y-%m-%d")
                if document.expiry_date
                else "-",
            ],
            ["Fee", str(document.fee)],
            ["O.R. Number", document.official_receipt_number or "-"],
        ]
        table = Table(rows, colWidths=[2 * inch, 4 * inch])
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (0, -1), colors.lightgrey),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ]
            )
        )
        story.append(table)

        if document.issued_by:
            story.append(Spacer(1, 36))
            story.append(Paragraph(f"<b>{escape(document.issued_by)}</b>", styles["Normal"]))
            story.append(Paragraph("Punong Barangay", styles["Normal"]))

        doc.build(story)
        return buffer.getvalue()

    def issue(self, document):
        content = self.render(document)
        return self.storage.save(self.filename(document), ContentFile(content))

    def delete(self, path):
        self.storage.delete(path)


def get_document_issuer():
    issuer_class = import_string(clearance_setting("DOCUMENT_ISSUER"))
    return issuer_class()


def run_issuer(document, issuer=None, timeout=None):
    """
    Run issuer.issue on a dedicated daemon thread and wait at most `timeout`
    seconds. A timed-out thread is abandoned; it cannot delay later issuances.

    Raises:
        DocumentIssuanceError: On issuer failure, empty result, or timeout
    """
    issuer = issuer or get_document_issuer()
    if timeout is None:
        timeout = float(clearance_setting("DOCUMENT_TIMEOUT_SECONDS"))

    future = Future()

    def _issue():
        try:
            future.set_result(issuer.issue(document))
        except Exception as exc:
            future.set_exception(exc)

    threading.Thread(
        target=_issue,
        name=f"clearance-doc-{document.reference_number}",
        daemon=True,
    ).start()

    try:
        path = future.result(timeout=timeout)
    except FutureTimeout:
        raise DocumentIssuanceError(f"Document issuance timed out after {timeout}s")
    except Exception as exc:
        raise DocumentIssuanceError(str(exc) or exc.__class__.__name__) from exc

    if not path:
        raise DocumentIssuanceError("Issuer returned no document reference")
    return path


def issue_document(request_id, generated_by=None, issuer=None):
    """
    Issue the document for a RELEASED request and record the outcome.

    generated_by is a user id, or None for issuance triggered by release.

    Returns:
        str | None: Storage reference, or None when skipped or failed
    """
    request = (
        ClearanceRequest.objects.select_related("resident", "clearance_type")
        .filter(id=request_id)
        .first()
    )
    if request is None or request.status != RequestStatus.RELEASED:
        logger.warning(
            "clearance_document_skipped",
            extra={
                "operation": "ISSUE_DOCUMENT",
                "entity_id": str(request_id),
                "status": request.status if request else None,
            },
        )
        return None

    try:
        path = run_issuer(build_document(request), issuer=issuer)
    except DocumentIssuanceError as exc:
        ClearanceRequest.objects.filter(id=request.id).update(
            document_error=str(exc)[:1000], updated_at=timezone.now()
        )
        logger.error(
            "clearance_document_failed",
            extra={
                "operation": "ISSUE_DOCUMENT",
                "entity_id": str(request.id),
                "reference_number": request.reference_number,
            },
            exc_info=exc,
        )
        return None

    now = timezone.now()
    ClearanceRequest.objects.filter(id=request.id).update(
        document_path=path,
        document_generated_date=now,
        document_generated_by_id=generated_by,
        document_error=None,
        updated_at=now,
    )
    logger.info(
        "clearance_document_issued",
        extra={
            "operation": "ISSUE_DOCUMENT",
            "entity_id": str(request.id),
            "document_path": path,
        },
    )
    return path


def dispatch_document_issuance(request_id, generated_by=None):
    """Schedule issuance to run once the current transaction commits."""
    transaction.on_commit(
        partial(issue_document, request_id, generated_by=generated_by), robust=True
    )
