"""
AuditLog model - immutable chronological record of state-changing operations.

Audit logs are append-only. No update or delete operations, neither on a
single instance nor through bulk queryset calls.
"""

from django.db import models
from django.utils import timezone

APPEND_ONLY_UPDATE_MESSAGE = "AuditLog entries are append-only. Updates are not allowed."
APPEND_ONLY_DELETE_MESSAGE = (
    "AuditLog entries are append-only. Deletions are not allowed."
)


class AuditLogQuerySet(models.QuerySet):
    """QuerySet that refuses bulk mutation."""

    def update(self, **kwargs):
        raise ValueError(APPEND_ONLY_UPDATE_MESSAGE)

    def delete(self):
        raise ValueError(APPEND_ONLY_DELETE_MESSAGE)

    def for_entity(self, entity_type, entity_id):
        return self.filter(entity_type=entity_type, entity_id=entity_id)

    def newest_first(self):
        return self.order_by("-occurred_at", "-id")


class AuditLog(models.Model):
    """AuditLog model - immutable audit trail."""

    id = models.BigAutoField(primary_key=True)
    action = models.CharField(max_length=50)
    actor = models.ForeignKey(
        "users.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_actions",
    )
    entity_type = models.CharField(max_length=50)
    entity_id = models.UUIDField()
    previous_state = models.JSONField(null=True, blank=True)
    new_state = models.JSONField(null=True, blank=True)
    origin = models.CharField(max_length=100, null=True, blank=True)
    request_id = models.CharField(max_length=64, null=True, blank=True)
    occurred_at = models.DateTimeField(default=timezone.now, editable=False)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        db_table = "audit_logs"
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="idx_audit_entity"),
            models.Index(fields=["occurred_at"], name="idx_audit_occurred"),
            models.Index(fields=["actor"], name="idx_audit_actor"),
            models.Index(fields=["action"], name="idx_audit_action"),
        ]
        ordering = ["-occurred_at", "-id"]

    def __str__(self):
        return (
            f"{self.action} - {self.entity_type}:{self.entity_id} at "
            f"{self.occurred_at}"
        )

    def save(self, *args, **kwargs):
        """Override save to prevent updates."""
        if not self._state.adding:
            raise ValueError(APPEND_ONLY_UPDATE_MESSAGE)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Override delete to prevent deletion."""
        raise ValueError(APPEND_ONLY_DELETE_MESSAGE)
