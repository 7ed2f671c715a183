"""
Error envelope tests for the DRF exception handler.
"""

from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from django.test import SimpleTestCase

from core.exceptions import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    domain_exception_handler,
)


class DomainExceptionHandlerTests(SimpleTestCase):
    def handle(self, exc):
        return domain_exception_handler(exc, {})

    def test_domain_errors_map_to_status_codes(self):
        cases = [
            (ValidationError("bad"), 400, "VALIDATION_ERROR"),
            (InvalidStateError("state"), 409, "INVALID_STATE"),
            (NotFoundError("missing"), 404, "NOT_FOUND"),
            (AuthorizationError("no"), 403, "FORBIDDEN"),
            (PersistenceError("down"), 503, "PERSISTENCE_ERROR"),
        ]
        for exc, status_code, code in cases:
            response = self.handle(exc)
            self.assertEqual(response.status_code, status_code)
            self.assertEqual(response.data["error"]["code"], code)
            self.assertEqual(response.data["error"]["message"], exc.message)

    def test_details_are_passed_through(self):
        response = self.handle(InvalidStateError("x", {"current_status": "APPROVED"}))
        self.assertEqual(
            response.data["error"]["details"], {"current_status": "APPROVED"}
        )

    def test_drf_errors_are_wrapped(self):
        response = self.handle(drf_exceptions.NotAuthenticated())
        self.assertEqual(response.data["error"]["code"], "UNAUTHORIZED")
        response = self.handle(drf_exceptions.PermissionDenied())
        self.assertEqual(response.data["error"]["code"], "FORBIDDEN")
        response = self.handle(Http404("gone"))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"]["code"], "NOT_FOUND")

    def test_serializer_errors_become_validation_error(self):
        response = self.handle(drf_exceptions.ValidationError({"purpose": ["required"]}))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "VALIDATION_ERROR")
        self.assertEqual(response.data["error"]["details"]["purpose"], ["required"])

    def test_unhandled_is_internal_error(self):
        with self.assertLogs("core.exceptions", level="ERROR"):
            response = self.handle(DatabaseError("boom"))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["error"]["code"], "INTERNAL_ERROR")
