"""
Clearance workflow settings with defaults.

Projects override any subset through the CLEARANCE_SETTINGS dict in Django
settings; missing keys fall back to DEFAULTS.
"""

from django.conf import settings

DEFAULTS = {
    "VALIDITY_MONTHS": 6,
    "REFERENCE_PREFIX": "CLR",
    "DOCUMENT_ISSUER": "apps.clearances.documents.PdfDocumentIssuer",
    "DOCUMENT_FOLDER": "clearances",
    "DOCUMENT_TIMEOUT_SECONDS": 30.0,
    "ISSUING_OFFICE": "Barangay Hall",
    "PUNONG_BARANGAY": "",
}


def clearance_setting(name):
    configured = getattr(settings, "CLEARANCE_SETTINGS", {})
    if name in configured:
        return configured[name]
    return DEFAULTS[name]
