"""
Serializers for AuditLog model.
"""

from rest_framework import serializers
from apps.audit.models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    """Serializer for AuditLog."""

    id = serializers.IntegerField(read_only=True)
    action = serializers.CharField(read_only=True)
    actorId = serializers.UUIDField(source="actor_id", read_only=True, allow_null=True)
    actorName = serializers.SerializerMethodField()
    entityType = serializers.CharField(source="entity_type", read_only=True)
    entityId = serializers.UUIDField(source="entity_id", read_only=True)
    previousState = serializers.JSONField(
        source="previous_state", read_only=True, allow_null=True
    )
    newState = serializers.JSONField(
        source="new_state", read_only=True, allow_null=True
    )
    origin = serializers.CharField(read_only=True, allow_null=True)
    requestId = serializers.CharField(
        source="request_id", read_only=True, allow_null=True
    )
    occurredAt = serializers.DateTimeField(source="occurred_at", read_only=True)

    class Meta:
        model = AuditLog
        fields = [
            "id",
            "action",
            "actorId",
            "actorName",
            "entityType",
            "entityId",
            "previousState",
            "newState",
            "origin",
            "requestId",
            "occurredAt",
        ]

    def get_actorName(self, obj):
        return obj.actor.display_name if obj.actor else None
