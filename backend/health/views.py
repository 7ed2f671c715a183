from django.apps import apps
from django.core.files.storage import default_storage
from django.db import DatabaseError, connection
from django.db.migrations.executor import MigrationExecutor
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView
from rest_framework.response import Response


class LiveView(APIView):
    """Liveness probe: process is running. No DB or external deps."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response({"status": "alive"})


class ReadyView(APIView):
    """Readiness probe: DB, migrations, workflow tables, document storage."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        checks = {}

        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1;")
            checks["database"] = "ok"
        except DatabaseError:
            checks["database"] = "error"

        try:
            executor = MigrationExecutor(connection)
            plan = executor.migration_plan(executor.loader.graph.leaf_nodes())
            checks["migrations"] = "ok" if not plan else "pending"
        except DatabaseError:
            checks["migrations"] = "error"

        for label, model_name in (
            ("clearance_table", "clearances.ClearanceRequest"),
            ("audit_table", "audit.AuditLog"),
        ):
            try:
                apps.get_model(model_name).objects.exists()
                checks[label] = "ok"
            except DatabaseError:
                checks[label] = "error"

        try:
            default_storage.exists("")
            checks["document_storage"] = "ok"
        except OSError:
            checks["document_storage"] = "error"

        overall = "ready" if all(v == "ok" for v in checks.values()) else "not_ready"

        return Response({"status": overall, "checks": checks})
